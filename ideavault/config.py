"""
アプリケーション設定管理モジュール
環境変数の読み込みとAPI接続先・タイムアウトの定義
"""
import os
from dotenv import load_dotenv

# 環境変数の読み込み
load_dotenv()

# =========================
# 環境変数から設定を読み込み
# =========================

# Record Store / Evaluation Service のAPIルート（未設定時はローカル開発用）
IDEAVAULT_API_URL = os.getenv("IDEAVAULT_API_URL", "") or "http://localhost:3001/api"

# 一覧取得・登録のタイムアウト（秒）
REQUEST_TIMEOUT = float(os.getenv("IDEAVAULT_REQUEST_TIMEOUT", "30"))
# 評価リクエストのタイムアウト（秒、採点は遅いので長め）
EVALUATION_TIMEOUT = float(os.getenv("IDEAVAULT_EVALUATION_TIMEOUT", "120"))

# 投稿完了メッセージの表示時間（秒）
SUCCESS_NOTICE_SECONDS = float(os.getenv("IDEAVAULT_SUCCESS_NOTICE_SECONDS", "3"))

# =========================
# 設定の検証
# =========================
if not IDEAVAULT_API_URL.startswith(("http://", "https://")):
    raise RuntimeError(f"IDEAVAULT_API_URL が不正です: {IDEAVAULT_API_URL}")
