"""
統一エラーハンドリングシステム
"""
import logging
import traceback
from typing import Dict, Any, List, Optional


class ErrorHandler:
    """エラーハンドリングの統一クラス

    処理を止めないデータ品質上の問題は ``log_and_continue`` で記録し、
    呼び出し元へ伝播させる致命的エラーは ``log_and_raise`` を使う。
    """
    
    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(__name__)
        self.collected_errors: List[Exception] = []
    
    def handle_store_error(self, error: Exception, store_name: str, operation: str) -> None:
        """行ストアのエラーを処理"""
        self.log_error_with_context(error, {
            'error_type': type(error).__name__,
            'store': store_name,
            'operation': operation,
            'error_message': str(error)
        })
    
    def log_and_continue(self, error: Exception, context: str) -> None:
        """エラーを記録して処理を継続（警告レベル）"""
        self.collected_errors.append(error)
        self.logger.warning(f"処理継続 [{context}]: {str(error)}")
    
    def log_and_raise(self, error: Exception, context: str) -> None:
        """エラーをログ出力して例外を再発生"""
        self.logger.error(f"致命的エラー [{context}]: {str(error)}")
        self.logger.debug(f"エラー詳細: {traceback.format_exc()}")
        raise error
    
    def log_error_with_context(self, error: Exception, context: Dict[str, Any]) -> None:
        """コンテキスト情報付きでエラーをログ出力"""
        context_str = ", ".join([f"{k}={v}" for k, v in context.items()])
        self.logger.error(f"エラー詳細: {context_str}")
        self.logger.debug(f"スタックトレース: {traceback.format_exc()}")
    
    def create_error_summary(self, errors: Optional[list] = None) -> Dict[str, Any]:
        """エラーリストから統計情報を作成"""
        if errors is None:
            errors = self.collected_errors
        
        if not errors:
            return {'total_errors': 0, 'error_types': {}}
        
        error_types = {}
        for error in errors:
            error_type = type(error).__name__
            error_types[error_type] = error_types.get(error_type, 0) + 1
        
        return {
            'total_errors': len(errors),
            'error_types': error_types,
            'first_error': str(errors[0]),
            'last_error': str(errors[-1])
        }
