from datetime import datetime, timezone

import pytest

from log_triage.models import LogRecord
from log_triage.parser import (
    BatchParser, FallbackMatcher, JsonMatcher, KernelMatcher, LineParser, RecordNormalizer,
    SyslogIntrusionMatcher, normalize_record, parse_line, parse_text,
)

SSH_FAILED = "Nov 06 09:12:04 sshd[2145]: Failed password for invalid user admin from 198.51.100.23 port 45678 ssh2"
KERNEL = "Nov 06 10:00:00 host kernel: IN=eth0 OUT= SRC=10.0.0.9 DST=10.0.0.2 PROTO=TCP SPT=4444 DPT=22"
CLF = '127.0.0.1 - frank [10/Oct/2000:13:55:36 -0700] "GET /apache_pb.gif HTTP/1.0" 200 2326'


def test_json_line_passes_object_through():
    bag = parse_line('{"ip": "10.0.0.1", "status": "Failed", "port": 22}')
    assert bag == {"ip": "10.0.0.1", "status": "Failed", "port": 22}


def test_malformed_json_falls_through_to_raw_record():
    bag = parse_line('{"ip":}')
    assert bag == {"raw": '{"ip":}'}
    record = normalize_record(bag)
    assert record.raw == '{"ip":}'
    assert record.source_ip is None


def test_json_array_is_not_an_object():
    assert JsonMatcher().match('[1, 2]') is None


def test_csv_line_is_positional():
    bag = parse_line("203.0.113.45, 2025-01-01T00:00:00Z , GET /,401,22")
    assert bag == {"srcIP": "203.0.113.45", "time": "2025-01-01T00:00:00Z",
                   "request": "GET /", "status": "401", "port": "22"}


def test_csv_missing_trailing_fields_are_absent():
    record = normalize_record(parse_line("10.1.1.1,2025-01-01T00:00:00Z,login"))
    assert record.request == "login"
    assert record.status is None
    assert record.port is None


def test_clf_line():
    record = normalize_record(parse_line(CLF))
    assert record.source_ip == "127.0.0.1"
    assert record.request == "GET /apache_pb.gif HTTP/1.0"
    assert record.status == "200"
    assert record.raw_time == "10/Oct/2000:13:55:36 -0700"
    assert record.parsed_time == datetime(2000, 10, 10, 20, 55, 36, tzinfo=timezone.utc)


def test_key_value_tokens_keep_names():
    bag = parse_line("src=1.2.3.4 dst=5.6.7.8 port=22 status=Failed")
    assert bag == {"src": "1.2.3.4", "dst": "5.6.7.8", "port": "22", "status": "Failed"}
    record = normalize_record(bag)
    assert (record.source_ip, record.dest_ip, record.port, record.status) == ("1.2.3.4", "5.6.7.8", 22, "Failed")


def test_key_value_splits_on_first_equals():
    assert parse_line("token=a=b") == {"token": "a=b"}


def test_syslog_intrusion_line():
    record = normalize_record(parse_line(SSH_FAILED), reference_year=2025)
    assert record.source_ip == "198.51.100.23"
    assert record.port == 45678
    assert record.status == "Failed"
    assert record.request == SSH_FAILED
    assert record.parsed_time == datetime(2025, 11, 6, 9, 12, 4, tzinfo=timezone.utc)


def test_syslog_accepted_line_is_ok():
    bag = parse_line("Nov 06 09:12:04 sshd[1]: Accepted publickey for bob from 10.0.0.5 port 50000 ssh2")
    assert bag["status"] == "OK"


def test_brute_marker_counts_as_failure():
    bag = SyslogIntrusionMatcher().match("IDS: brute attempt from 10.0.0.5 port 22")
    assert bag["status"] == "Failed"
    assert bag["time"] is None


def test_kernel_line_is_claimed_by_key_value_but_fields_survive():
    bag = parse_line(KERNEL)
    assert bag["SRC"] == "10.0.0.9"
    record = normalize_record(bag)
    assert record.source_ip == "10.0.0.9"
    assert record.dest_ip == "10.0.0.2"
    assert record.port == 22


def test_kernel_matcher_without_key_value_catch_all():
    parser = LineParser([SyslogIntrusionMatcher(), KernelMatcher(), FallbackMatcher()])
    bag = parser.parse_line(KERNEL)
    assert bag == {"srcIP": "10.0.0.9", "port": "22", "time": "Nov 06 10:00:00", "request": KERNEL}


def test_bare_syslog_timestamp():
    line = "Nov 06 09:12:04 cron[99]: job finished"
    assert parse_line(line) == {"time": "Nov 06 09:12:04", "raw": line}


def test_fallback_with_and_without_address():
    assert parse_line("connection reset by 8.8.8.8 (peer)") == {
        "srcIP": "8.8.8.8", "raw": "connection reset by 8.8.8.8 (peer)"}
    assert parse_line("something happened") == {"raw": "something happened"}


@pytest.mark.parametrize("line", ["", "   ", "\t", "\r"])
def test_blank_lines_yield_nothing(line):
    assert parse_line(line) is None


@pytest.mark.parametrize("line", [
    '{"ip":}', "{", "}", "a,b,c", "=", "x= y", "Jan 99 99:99:99 bad", "999.999.999.999", "éè",
])
def test_non_blank_lines_always_yield_a_bag(line):
    bag = parse_line(line)
    assert bag is not None
    assert normalize_record(bag).raw


def test_custom_chain_without_fallback_keeps_raw():
    assert LineParser([JsonMatcher()]).parse_line("plain text") == {"raw": "plain text"}


def test_alias_priority():
    record = normalize_record({"ip": "1.1.1.1", "srcIP": "2.2.2.2", "client": "3.3.3.3"})
    assert record.source_ip == "2.2.2.2"


def test_empty_alias_values_are_skipped():
    record = normalize_record({"srcIP": "", "ip": "4.4.4.4", "status": None, "code": 403})
    assert record.source_ip == "4.4.4.4"
    assert record.status == "403"


def test_alias_matching_is_case_insensitive_as_fallback():
    record = normalize_record({"SrcIP": "9.9.9.9", "Timestamp": "2025-01-01T00:00:00Z"})
    assert record.source_ip == "9.9.9.9"
    assert record.parsed_time == datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize("value,expected", [
    ("22", 22), (443, 443), (" 8080 ", 8080), ("ssh", None), ("", None), (True, None), (70000, None),
])
def test_port_coercion(value, expected):
    assert normalize_record({"port": value}).port == expected


def test_destination_port_alias():
    assert normalize_record({"destination_port": "3389"}).port == 3389


def test_raw_is_reserialized_bag_when_absent():
    record = normalize_record({"ip": "1.2.3.4", "status": "OK"})
    assert record.raw == '{"ip": "1.2.3.4", "status": "OK"}'


def test_no_time_means_no_parsed_time():
    record = normalize_record({"ip": "1.2.3.4"})
    assert record.raw_time is None
    assert record.parsed_time is None


def test_unresolvable_time_is_kept_raw():
    record = normalize_record({"ip": "1.2.3.4", "time": "yesterday-ish"})
    assert record.raw_time == "yesterday-ish"
    assert record.parsed_time is None


def test_normalizing_a_record_dict_is_idempotent():
    normalizer = RecordNormalizer(reference_year=2025)
    record = normalizer.normalize(parse_line(SSH_FAILED))
    again = normalizer.normalize(record.to_dict())
    assert again == record
    assert isinstance(again, LogRecord)


def test_batch_parser_drops_blank_lines_and_keeps_order():
    text = f"{CLF}\r\n\r\n{SSH_FAILED}\n   \nsomething odd\n"
    records = parse_text(text, reference_year=2025)
    assert [r.source_ip for r in records] == ["127.0.0.1", "198.51.100.23", None]
    assert records[2].raw == "something odd"
    assert len(records) < len(text.split("\n"))


def test_batch_parser_empty_input():
    assert BatchParser().parse_text("") == []
    assert BatchParser().parse_text("\n\n  \r\n") == []


def test_out_of_range_clf_time_does_not_abort_batch():
    text = '1.2.3.4 - - [31/Dec/9999:23:59:59 -1400] "GET /" 200 1\n' + CLF
    records = parse_text(text)
    assert len(records) == 2
    assert records[0].raw_time == "31/Dec/9999:23:59:59 -1400"
    assert records[0].parsed_time is None
    assert records[1].parsed_time is not None
