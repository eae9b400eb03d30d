"""
IdeaVault クライアント
アイデアの投稿・評価ステータス管理・表示状態の導出
"""
