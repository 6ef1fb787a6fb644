import json

import pytest
from thread_dump_parser.driver import parse_thread_dumps
from thread_dump_parser.reporter import (
    compute_dump_stats,
    generate_report,
    generate_summary_line,
    NO_STATE,
)


def test_compute_dump_stats(simple_thread_dump):
    dump = parse_thread_dumps(simple_thread_dump).dumps[0]
    stats = compute_dump_stats(dump)

    assert stats["total_threads"] == 5
    assert stats["daemon_threads"] == 2
    assert stats["states"] == {
        "RUNNABLE": 1,
        "SLEEPING": 1,
        "IN_OBJECT_WAIT": 1,
        "WAITING_ON_CONDITION": 2,
    }


def test_compute_dump_stats_without_state():
    content = "2016-08-13 17:42:10\nFull thread dump\n\n\"a\" os_prio=0 tid=0x1 nid=0x1\n\n"
    dump = parse_thread_dumps(content).dumps[0]

    assert compute_dump_stats(dump)["states"] == {NO_STATE: 1}


def test_summary_line(two_thread_dumps):
    result = parse_thread_dumps(two_thread_dumps)

    assert generate_summary_line(result) == "2 thread dumps, 3 threads, 1 diagnostics"


def test_txt_report(two_thread_dumps):
    report = generate_report(parse_thread_dumps(two_thread_dumps), format="txt")

    assert "=== Thread Dump Report ===" in report
    assert "Thread dump 1: 2016-08-13 17:42:10 (line 2)" in report
    assert "Thread dump 2: 2016-08-13 17:43:10 (line 14)" in report
    assert "WAITING_FOR_MONITOR_ENTRY:" in report
    assert "Diagnostics" in report
    assert "line 1: [unattributed-line]" in report


def test_md_report(simple_thread_dump):
    report = generate_report(parse_thread_dumps(simple_thread_dump), format="md")

    assert report.startswith("# Thread Dump Report")
    assert "| WAITING_ON_CONDITION | 2 |" in report
    assert "## Diagnostics" not in report


def test_raw_in_report(simple_thread_dump):
    report = generate_report(parse_thread_dumps(simple_thread_dump), format="txt", raw=True)

    assert "JNI global references: 7" in report
    assert "\tat java.lang.Object.wait(Object.java:502)" in report


def test_json_report(two_thread_dumps):
    payload = json.loads(generate_report(parse_thread_dumps(two_thread_dumps), format="json"))

    assert payload["summary"] == "2 thread dumps, 3 threads, 1 diagnostics"
    assert [d["thread_count"] for d in payload["dumps"]] == [2, 1]
    worker = payload["dumps"][0]["threads"][0]
    assert worker["thread_name"] == "worker-1"
    assert worker["tid"] == "0x00007f1234567890"
    assert worker["thread_state"] == "RUNNABLE"
    assert worker["monitor"] == "0x00007f1100000000"
    assert "raw" not in worker
    assert payload["diagnostics"][0]["kind"] == "unattributed-line"


def test_json_report_with_raw(simple_thread_dump):
    payload = json.loads(generate_report(parse_thread_dumps(simple_thread_dump), format="json", raw=True))

    assert payload["dumps"][0]["raw"] == "\n".join(simple_thread_dump.splitlines())


def test_unknown_format(simple_thread_dump):
    with pytest.raises(ValueError):
        generate_report(parse_thread_dumps(simple_thread_dump), format="html")
