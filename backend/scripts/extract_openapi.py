#!/usr/bin/env python3
"""
OpenAPIスキーマ出力スクリプト
Program Planner の REST 契約（フロントエンドが利用する API）を JSON で出力します。

使用方法:
    python backend/scripts/extract_openapi.py
    python backend/scripts/extract_openapi.py --output backend/openapi.json
"""
import argparse
import json
import os
import sys

# settings のインポート時に読まれる値（DB には接続しない）
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SECRET_KEY", "schema-extraction-only")

from program_planner.main import app  # noqa: E402


def extract_openapi() -> dict:
    """ルート定義から OpenAPI スキーマを生成する（lifespan は起動しない）"""
    return app.openapi()


def main():
    parser = argparse.ArgumentParser(
        description="Program Planner の OpenAPI スキーマを出力します"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="出力先ファイルパス（省略時は標準出力）",
    )
    args = parser.parse_args()

    json_output = json.dumps(extract_openapi(), ensure_ascii=False, indent=2)

    if args.output:
        directory = os.path.dirname(os.path.abspath(args.output))
        os.makedirs(directory, exist_ok=True)
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(json_output)
        print(f"OpenAPIスキーマを {args.output} に出力しました", file=sys.stderr)
    else:
        print(json_output)


if __name__ == "__main__":
    main()
