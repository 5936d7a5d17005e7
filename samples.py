"""Starter NanoLang programs shown in the editor's example picker."""

from __future__ import annotations

from typing import Dict, List

SAMPLES: Dict[str, List[Dict[str, str]]] = {
    "en": [
        {
            "name": "Hello World",
            "code": 'note Welcome to NanoLang!\nsay "Hello World!"\nsay "Coding is fun."',
        },
        {
            "name": "Variables",
            "code": (
                "set x = 10\n"
                "set y = 5\n"
                "set result = x * y\n"
                'say "X is", x\n'
                'say "Y is", y\n'
                'say "Multiplication result:", result'
            ),
        },
        {
            "name": "Loops",
            "code": 'say "Counting down..."\nrepeat 5\n  say "Loop iteration"\nend\nsay "Done!"',
        },
        {
            "name": "Conditions",
            "code": 'set power = 9001\ncheck power > 9000\n  say "It is over 9000!"\nend',
        },
    ],
    "ja": [
        {
            "name": "ハローワールド",
            "code": 'note NanoLangへようこそ！\nsay "こんにちは、世界！"\nsay "プログラミングは楽しい。"',
        },
        {
            "name": "変数",
            "code": (
                "set x = 10\n"
                "set y = 5\n"
                "set result = x * y\n"
                'say "X は", x\n'
                'say "Y は", y\n'
                'say "掛け算の結果:", result'
            ),
        },
        {
            "name": "ループ",
            "code": 'say "カウントダウン..."\nrepeat 5\n  say "繰り返しています"\nend\nsay "終わり！"',
        },
        {
            "name": "条件",
            "code": 'set power = 9001\ncheck power > 9000\n  say "パワーが9000を超えています！"\nend',
        },
    ],
}


def get_samples(language: str = "en") -> List[Dict[str, str]]:
    return [dict(sample) for sample in SAMPLES.get(language, SAMPLES["en"])]
