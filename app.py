import os
import traceback

from flask import Flask, jsonify, request

from ai import UnsafeRequestError, convert_python_to_nano, explain_nano_code, generate_nano_code
from nano_engine import analyze, run_nano_code, run_python_code, transpile
from samples import get_samples

app = Flask(__name__)


def _log_debug(message: str) -> None:
    print(f"[RUN DEBUG] {message}", flush=True)


def _payload() -> dict:
    return request.get_json(force=True, silent=True) or {}


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    return "" if value is None else str(value)


@app.route("/compile", methods=["POST"])
def compile_code():
    code = _text(_payload(), "code")
    return jsonify(
        {
            "ok": True,
            "code": transpile(code),
            "diagnostics": [d.to_dict() for d in analyze(code)],
        }
    )


@app.route("/run", methods=["POST"])
def run_code():
    payload = _payload()
    python_code = payload.get("python")

    # Raw Python comes from the import path and skips the transpiler.
    if python_code is not None:
        if not str(python_code).strip():
            return jsonify({"ok": False, "error": "No code provided."}), 400
        result = run_python_code(str(python_code))
    else:
        code = _text(payload, "code")
        if not code.strip():
            return jsonify({"ok": False, "error": "No code provided."}), 400
        result = run_nano_code(code)

    if result["error"]:
        _log_debug(result["error"])
    return jsonify(result), 200


@app.route("/analyze", methods=["POST"])
def analyze_code():
    diagnostics = analyze(_text(_payload(), "code"))
    return jsonify({"ok": not diagnostics, "diagnostics": [d.to_dict() for d in diagnostics]})


@app.route("/samples", methods=["GET"])
def samples():
    return jsonify({"ok": True, "samples": get_samples(request.args.get("lang", "en"))})


def _ai_response(call, key: str, *args):  # noqa: ANN001
    try:
        text = call(*args)
    except ValueError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400
    except UnsafeRequestError as exc:
        print(f"[AI DEBUG] unsafe: {exc}", flush=True)
        return jsonify({"ok": False, "error": "Unsafe request"}), 400
    except Exception as exc:  # noqa: BLE001
        print(f"[AI DEBUG] Unexpected error: {type(exc).__name__}: {exc}", flush=True)
        print(traceback.format_exc(), flush=True)
        return jsonify({"ok": False, "error": "AI unavailable", "detail": str(exc)}), 500

    if text is None:
        return jsonify({"ok": False, "error": "AI unavailable"}), 503
    return jsonify({"ok": True, key: text}), 200


@app.route("/ai/generate", methods=["POST"])
def ai_generate():
    payload = _payload()
    return _ai_response(
        generate_nano_code, "code", _text(payload, "prompt"), payload.get("language", "en")
    )


@app.route("/ai/explain", methods=["POST"])
def ai_explain():
    payload = _payload()
    return _ai_response(
        explain_nano_code, "explanation", _text(payload, "code"), payload.get("language", "en")
    )


@app.route("/ai/convert", methods=["POST"])
def ai_convert():
    return _ai_response(convert_python_to_nano, "code", _text(_payload(), "code"))


if __name__ == "__main__":
    port = int(os.environ.get("PORT", "5000"))
    debug = os.environ.get("NANO_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug, use_reloader=False)
