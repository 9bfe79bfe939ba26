import sys
from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """
    應用程式全域設定。
    自動從環境變數 (.env) 讀取並驗證型別。
    """
    # 資料儲存 (JSON 檔案)
    DATA_DIR: str = "data"
    TRADES_COLLECTION: str = "trades"
    REPORTS_COLLECTION: str = "brokerReports"

    # 交易集合不存在或損毀時，是否寫入範例資料
    SEED_SAMPLE_DATA: bool = True

    # 匯出
    EXPORT_DIR: str = "exports"

    # 應用程式行為
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None  # 未設定時只輸出到 console
    REFRESH_INTERVAL_SECONDS: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True  # 區分大小寫，通常環境變數建議全大寫

# Singleton Instance
try:
    settings = Settings()
except Exception as e:
    # 這裡只做基本 print，因為 logging 模組可能依賴 settings，避免循環
    print(f"CRITICAL: Failed to load configuration. Invalid env vars? {e}", file=sys.stderr)
    settings = None

def get_settings() -> Settings:
    """設定載入失敗時退回預設值 (不讀取環境變數)"""
    if settings is not None:
        return settings
    return Settings.model_construct()
