import json

from issueboard.logging import StructuredLogger, configure_logging, get_logger


def _json_lines(text: str) -> list[dict]:
    return [json.loads(line) for line in text.strip().split('\n') if line.strip()]


def test_structured_logger_json_format(capsys):
    """Structured logger produces JSON output when configured."""
    logger = StructuredLogger(name='test', json_logging=True, level='INFO')
    logger.log_operation('test_operation', param1='value1', param2=42)

    log_lines = _json_lines(capsys.readouterr().err)
    assert len(log_lines) == 1
    log_data = log_lines[0]
    assert log_data['level'] == 'INFO'
    assert log_data['operation'] == 'test_operation'
    assert log_data['param1'] == 'value1'
    assert log_data['param2'] == 42
    assert 'timestamp' in log_data


def test_structured_logger_regular_format(capsys):
    logger = StructuredLogger(name='test', json_logging=False, level='INFO')
    logger.log_operation('test_operation', param1='value1')

    captured = capsys.readouterr()
    assert 'Operation: test_operation' in captured.err
    assert 'INFO' in captured.err


def test_structured_logger_issue_actions(capsys):
    logger = StructuredLogger(name='test', json_logging=True, level='INFO')
    logger.log_issue_action('status', 'abc123', status='In Progress', user='dev@example.com')

    log_data = json.loads(capsys.readouterr().err.strip())
    assert log_data['operation'] == 'issue_status'
    assert log_data['issue_id'] == 'abc123'
    assert log_data['status'] == 'In Progress'
    assert log_data['user'] == 'dev@example.com'
    assert log_data['message'] == 'issue status abc123 -> In Progress'


def test_json_logger_drops_consecutive_duplicates(capsys):
    logger = StructuredLogger(name='test', json_logging=True, level='INFO')
    logger.log_operation('reload')
    logger.log_operation('reload')
    logger.log_operation('reload', attempt=2)

    assert len(_json_lines(capsys.readouterr().err)) == 2


def test_timed_operation_context_manager(capsys):
    logger = StructuredLogger(name='test', json_logging=True, level='INFO')

    with logger.timed_operation('list_issues', status_filter='Open'):
        pass

    start_log, perf_log = _json_lines(capsys.readouterr().err)[:2]
    assert start_log['operation'] == 'list_issues_start'
    assert start_log['status_filter'] == 'Open'
    assert perf_log['operation'] == 'list_issues'
    assert 'duration_ms' in perf_log


def test_debug_suppressed_at_info_level(capsys):
    logger = StructuredLogger(name='test', json_logging=True, level='INFO')
    logger.debug('hidden detail')
    assert capsys.readouterr().err == ''


def test_configure_logging_replaces_global():
    logger1 = configure_logging(json_logging=True, level='DEBUG')
    assert get_logger() is logger1
    logger2 = configure_logging(json_logging=False, level='INFO')
    assert logger1 is not logger2
    assert get_logger() is logger2
