"""Prompt text for the Anthropic-backed analyzer and generator.

The generated Q&A is published on Japanese shop pages, so the prompts are
written in Japanese and carry the advertising/labelling compliance rules.
"""

from typing import Dict

from productqa.scrapers.base import ProductRecord
from productqa.scrapers.utils.normalizer import Category


IMAGE_ANALYSIS_SYSTEM_PROMPT = (
    "商品画像から情報を抽出してください。テキスト、特徴、仕様などを詳細に記述してください。"
)


def image_analysis_prompt(title: str) -> str:
    return f"「{title}」の画像から、サイズ、素材、色、特徴、注意事項などの情報を抽出してください。"


# Question focus per category; GENERAL doubles as the fallback
CATEGORY_FOCUS: Dict[Category, str] = {
    Category.FOOTWEAR: """靴製品について、以下の観点から質問と回答を生成してください：
- サイズ感・フィット感
- 素材・品質
- デザイン・スタイル
- 履き心地・クッション性
- 防水性・耐久性
- 手入れ・メンテナンス方法
- 使用シーン・コーディネート
- 配送・返品・交換""",
    Category.APPAREL: """アパレル製品について、以下の観点から質問と回答を生成してください：
- サイズ感・着丈
- 素材・生地の特徴
- デザイン・カラー
- 着心地・伸縮性
- 洗濯・お手入れ方法
- コーディネート提案
- シーズン・使用シーン
- 配送・返品・交換""",
    Category.GOLF: """ゴルフ用品について、以下の観点から質問と回答を生成してください：
- 製品仕様・スペック
- 適合ゴルファー（レベル・スイングタイプ）
- 飛距離・方向性
- 打感・操作性
- カスタマイズオプション
- 使用上の注意点
- メンテナンス方法
- 配送・保証""",
    Category.BAG: """バッグ製品について、以下の観点から質問と回答を生成してください：
- サイズ・容量
- 素材・品質
- デザイン・カラー
- 収納力・ポケット
- 重量・持ち運びやすさ
- 使用シーン
- 手入れ方法
- 配送・返品""",
    Category.WATCH: """時計製品について、以下の観点から質問と回答を生成してください：
- 仕様・機能
- デザイン・サイズ
- ムーブメント
- 防水性能
- ベルト・バンド
- 使用シーン
- メンテナンス・保証
- 配送・返品""",
    Category.ACCESSORY: """アクセサリー製品について、以下の観点から質問と回答を生成してください：
- サイズ・サイズ調整
- 素材・品質
- デザイン・スタイル
- アレルギー対応
- 使用シーン・コーディネート
- お手入れ方法
- ギフト包装
- 配送・返品""",
    Category.BEAUTY_APPLIANCE: """美容家電について、以下の観点から質問と回答を生成してください：
- 機能・性能
- 使用方法
- 効果・期待できる結果
- 安全性・注意事項
- 消耗品・交換部品
- 使用頻度・タイミング
- お手入れ・メンテナンス
- 保証・配送""",
    Category.HOME_APPLIANCE: """家電製品について、以下の観点から質問と回答を生成してください：
- 製品仕様・性能
- 機能・操作方法
- 設置・サイズ
- 消費電力・ランニングコスト
- お手入れ・メンテナンス
- 保証・修理
- 配送・設置サービス
- 使用上の注意""",
    Category.COSMETICS: """化粧品について、以下の観点から質問と回答を生成してください（薬機法遵守）：
- 製品の特徴（効能効果は控えめに）
- 使用方法
- 成分・配合
- 肌質への適合性
- 使用感・テクスチャー
- 使用期限・保管方法
- アレルギーテスト
- 配送・返品
※医薬品的な効能表現は避けてください""",
    Category.SUPPLEMENT: """サプリメントについて、以下の観点から質問と回答を生成してください（薬機法・健康増進法遵守）：
- 製品の特徴（効果効能は表現しない）
- 成分・栄養素
- 摂取方法・タイミング
- 1日の摂取目安量
- 原材料・アレルゲン
- 保管方法・賞味期限
- 注意事項
- 配送・返品
※病気の治療・予防効果の表現は厳禁""",
    Category.FOOD: """食品について、以下の観点から質問と回答を生成してください（食品表示法遵守）：
- 商品の特徴・おすすめポイント
- 原材料・栄養成分
- 味・食感
- 調理方法・食べ方
- 保存方法・賞味期限
- アレルゲン情報
- 産地・製造地
- 配送方法
※健康効果の過大な表現は避けてください""",
    Category.GENERAL: """この商品について、以下の観点から質問と回答を生成してください：
- 商品の特徴・仕様
- 使用方法・使い方
- サイズ・寸法
- 素材・品質
- 使用シーン
- お手入れ・メンテナンス
- 配送・返品・交換
- その他よくある質問""",
}

COMPLIANCE_RULES = """法令遵守（重要）:
- 薬機法: 医薬品的効能の表現を避ける
- 景品表示法: 誇大広告を避ける
- 食品表示法: 健康効果の過大表現を避ける
- 健康増進法: 疾病の治療・予防効果の表現を避ける"""


def generation_system_prompt(category: Category, count: int, scope: str) -> str:
    """System prompt fixing the output contract, scope and category focus."""
    focus = CATEGORY_FOCUS.get(category, CATEGORY_FOCUS[Category.GENERAL])
    return f"""あなたは商品Q&A作成の専門家です。

重要な制約:
1. 指定された数（{count}問）のQ&Aを必ず生成してください
2. **価格に関するQ&Aは絶対に含めないでください**
   - 「いくらですか」「値段は」「価格は」「〇〇円」などの価格関連の質問と回答は除外
   - セール・割引・クーポンに関する質問も除外
3. リソースタイプ指定: {scope}
   - "specified_url": 指定されたページの情報のみ使用（外部情報は含めない）
   - "external": 外部情報・一般知識のみ使用（指定ページの具体的情報は含めない）
   - "both": 両方の情報を統合して使用

4. 各Q&Aには必ずsourceTypeフィールドを付与:
   - "specified_page": 指定されたページから取得した情報
   - "same_domain": 同ドメイン内の別ページから取得した情報
   - "external": 外部情報・AI提案（一般的な知識）

5. JSONのみで回答してください。フォーマット:
{{
  "qa": [
    {{
      "q": "質問文",
      "a": "回答文",
      "sourceType": "specified_page"
    }}
  ]
}}

{focus}

{COMPLIANCE_RULES}"""


def generation_user_prompt(
    record: ProductRecord, analysis_text: str, count: int, scope: str
) -> str:
    # Price is context only; the system prompt forbids price questions
    return f"""商品情報:
タイトル: {record.title}
説明: {record.description}
価格: {record.price}
詳細: {record.details}

画像分析結果: {analysis_text}

指定数: {count}問
リソースタイプ: {scope}

上記情報をもとに、{count}問のQ&Aを生成してください。"""


RESEARCH_SYSTEM_PROMPT = """あなたは商品情報の専門家です。ユーザーからの質問に対して、一般的な知識や業界標準に基づいた有益な情報を提供してください。

重要な注意事項:
- 薬機法に違反する表現（「シミが消える」「痩せる」「病気が治る」など）は絶対に使用しないでください
- 景品表示法に違反する根拠のない最上級表現（「業界No.1」「最高級」など）は避けてください
- 食品表示法・健康増進法に違反する健康効果の断定表現は使用しないでください
- 事実に基づいた、客観的な情報を提供してください
- 具体的で実用的な回答を心がけてください"""
