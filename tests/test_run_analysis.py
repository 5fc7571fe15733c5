import json

import pytest

from run_analysis import load_state


def _record(**process_overrides):
    process = {"id": "P1", "name": "Cut", "cycle_time": 2}
    process.update(process_overrides)
    return {
        "daily_demand": 100,
        "available_time": 480,
        "processes": [process],
        "inventories": [],
    }


def test_load_state_reads_record(tmp_path):
    path = tmp_path / "stream.json"
    path.write_text(json.dumps(_record()))
    state = load_state(str(path))
    assert [p.id for p in state.processes] == ["P1"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"flow_type": "sideways"},
        {"process_type": "teleport"},
        {"cycle_time": "fast"},
        {"cycle_time": -3},
    ],
)
def test_bad_record_values_exit_with_message(tmp_path, overrides):
    path = tmp_path / "stream.json"
    path.write_text(json.dumps(_record(**overrides)))
    with pytest.raises(SystemExit) as exc:
        load_state(str(path))
    assert "Invalid value stream record" in str(exc.value.code)
