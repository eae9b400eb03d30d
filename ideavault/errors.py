"""
エラー定義
ゲートウェイ境界で通信エラーをここの種類に変換する
"""
from typing import Optional


class IdeaVaultError(Exception):
    """IdeaVault クライアントの基底例外"""


class ValidationError(IdeaVaultError):
    """必須入力の欠落（ネットワーク呼び出し前にローカルで検出）"""


class TransportError(IdeaVaultError):
    """一覧取得・登録の失敗（バナー表示、既存状態は保持）"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EvaluationError(IdeaVaultError):
    """評価サービスの失敗（アイデア単位で status=error として記録）"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RegistryError(IdeaVaultError):
    """レジストリの不変条件違反（重複IDの追加など）"""
