"""Commenter personality prompt templates.

PERSONALITY_TYPES — structured classification. Variables: {comments}, {focus}.
INTERACTION_PATTERNS — free text. Variables: {types}, {context}.
MODERATION_STRATEGY — free text. Variables: {types}, {conflict_level}.
"""

from __future__ import annotations

PERSONALITY_TYPES = """\
あなたは心理学とオンラインコミュニティ分析の専門家です。
以下のYouTubeコメントを分析し、コメント者の性格タイプを分類してください。

性格タイプ分類（参考）:
- 理論派: データや根拠を重視、論理的思考
- 感情派: 感情的な表現が多い、共感重視
- 平和主義者: 仲裁や妥協案を提示
- 煽り屋: 論争を激化させたがる、挑発的
- 専門家: 詳しい知識を披露、権威的
- 傍観者: 他人の意見をまとめるだけ、受動的
- 懐疑派: 批判的思考、反論が多い
- 支持者: 肯定的、賛同の表現が多い

コメント:
{comments}

分析の詳細度: {focus}"""

INTERACTION_PATTERNS = """\
以下の性格タイプが混在するコメント欄で、どのような相互作用が起こりやすいか分析してください。

存在する性格タイプ: {types}
議論の文脈: {context}

分析項目:
1. 協調的な関係になりやすい組み合わせ
2. 対立しやすい組み合わせ
3. 議論の発展パターンの予測
4. 注意すべき火種
5. 建設的な方向に導く方法"""

MODERATION_STRATEGY = """\
以下の条件でのコメント欄モデレーション戦略を提案してください。

支配的な性格タイプ: {types}
現在の対立レベル: {conflict_level}/10

提案項目:
1. この性格構成に最適なモデレーション方針
2. 各タイプへの具体的なアプローチ方法
3. エスカレーション防止策
4. 建設的な議論を促進する介入方法
5. 危険サインの早期発見方法"""
