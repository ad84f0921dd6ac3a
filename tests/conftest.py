import logging

import pytest


@pytest.fixture(autouse=True, scope="session")
def error_log_in_tmp(tmp_path_factory):
    """エラーログをテスト用ディレクトリへ出力"""
    logger = logging.getLogger('error_handler')
    original = list(logger.handlers)
    for handler in original:
        logger.removeHandler(handler)

    handler = logging.FileHandler(tmp_path_factory.mktemp("logs") / "error.log", encoding='utf-8', delay=True)
    logger.addHandler(handler)
    yield
    logger.removeHandler(handler)
    handler.close()
    for handler in original:
        logger.addHandler(handler)
