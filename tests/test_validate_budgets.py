import importlib.util
import json
from pathlib import Path

SCRIPT_PATH = Path(__file__).resolve().parents[1] / 'scripts' / 'validate_budgets.py'
EXAMPLE = Path(__file__).resolve().parents[1] / 'data' / 'budgets' / 'example_week.json'


def _load_script():
    spec = importlib.util.spec_from_file_location('validate_budgets_test', SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_example_document_validates():
    module = _load_script()
    assert module.validate_budget(EXAMPLE) == {}
    assert module.main([EXAMPLE]) == 0


def test_malformed_document_fails(tmp_path):
    module = _load_script()
    bad = tmp_path / 'bad.json'
    bad.write_text(json.dumps({'_id': 'x', 'totalBudget': 10}), encoding='utf-8')
    result = module.validate_budget(bad)
    assert result['name'] == 'bad'
    assert 'categories' in result['errors']
    assert module.main([bad]) == 1
