class AppError(Exception):
    """所有應用程式自定義錯誤的基類"""
    pass

class StorageError(AppError):
    """資料寫入錯誤 (如資料目錄無法寫入)"""
    pass

class ValidationError(AppError):
    """手動輸入的交易不符合資料規則"""
    pass

class RecordNotFoundError(AppError):
    """找不到指定 id 的交易"""
    pass

class ImportRejected(AppError):
    """CSV 匯入被拒絕，會在匯入邊界轉為失敗結果"""
    pass

class InvalidFormatError(ImportRejected):
    """標題列缺少必要欄位 (symbol / pnl)"""
    pass

class NoValidRowsError(ImportRejected):
    """格式正確但沒有任何一列能產生交易"""
    pass
