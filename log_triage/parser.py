"""Log Triage - Line parsing and record normalization"""

import json
import logging
import re
from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .models import LogRecord
from .patterns import (
    ANY_IP, CLF_LINE, CSV_LEADING_IP, FIELD_ALIASES, JSON_OBJECT, KERNEL_FIREWALL,
    KEY_VALUE, SYSLOG_INTRUSION, SYSLOG_PREFIX,
)
from .timestamps import resolve_timestamp

logger = logging.getLogger(__name__)

FieldBag = Dict[str, Any]

CSV_FIELDS = ('srcIP', 'time', 'request', 'status', 'port')
LINE_SPLIT = re.compile(r"\r?\n")


class LineMatcher(ABC):
    """One line format; returns a field bag or None when the line isn't its format."""
    name = 'base'

    @abstractmethod
    def match(self, line: str) -> Optional[FieldBag]:
        pass


def _syslog_time(line: str) -> Optional[str]:
    match = SYSLOG_PREFIX.match(line)
    return match.group(0) if match else None


class JsonMatcher(LineMatcher):
    name = 'json'

    def match(self, line):
        if not JSON_OBJECT.match(line):
            return None
        try:
            obj = json.loads(line)
        except ValueError:
            return None
        return obj if isinstance(obj, dict) else None


class CsvMatcher(LineMatcher):
    name = 'csv'

    def match(self, line):
        parts = line.split(',')
        if len(parts) < 3 or not CSV_LEADING_IP.match(parts[0]):
            return None
        return {key: value.strip() for key, value in zip(CSV_FIELDS, parts)}


class CommonLogMatcher(LineMatcher):
    name = 'clf'

    def match(self, line):
        match = CLF_LINE.match(line)
        if not match:
            return None
        return {
            'srcIP': match.group('ip'),
            'time': match.group('time'),
            'request': match.group('request'),
            'status': match.group('status'),
        }


class KeyValueMatcher(LineMatcher):
    """Catch-all for ``key=value`` tokens.

    Any stray ``=`` is enough to claim a line, so kernel firewall lines
    (``SRC=... DPT=...``) end up here rather than in KernelMatcher.
    """
    name = 'kv'

    def match(self, line):
        pairs = KEY_VALUE.findall(line)
        if not pairs:
            return None
        return dict(pairs)


class SyslogIntrusionMatcher(LineMatcher):
    name = 'syslog'

    def match(self, line):
        match = SYSLOG_INTRUSION.search(line)
        if not match:
            return None
        lowered = line.lower()
        failed = 'failed' in lowered or 'brute' in lowered
        return {
            'srcIP': match.group('ip'),
            'port': match.group('port'),
            'time': _syslog_time(line),
            'status': 'Failed' if failed else 'OK',
            'request': line,
        }


class KernelMatcher(LineMatcher):
    name = 'kernel'

    def match(self, line):
        match = KERNEL_FIREWALL.search(line)
        if not match:
            return None
        return {
            'srcIP': match.group('ip'),
            'port': match.group('port'),
            'time': _syslog_time(line),
            'request': line,
        }


class SyslogTimeMatcher(LineMatcher):
    name = 'syslog_time'

    def match(self, line):
        time = _syslog_time(line)
        if time is None:
            return None
        return {'time': time, 'raw': line}


class FallbackMatcher(LineMatcher):
    name = 'fallback'

    def match(self, line):
        match = ANY_IP.search(line)
        if match:
            return {'srcIP': match.group(1), 'raw': line}
        return {'raw': line}


DEFAULT_MATCHERS: Tuple[LineMatcher, ...] = (
    JsonMatcher(),
    CsvMatcher(),
    CommonLogMatcher(),
    KeyValueMatcher(),
    SyslogIntrusionMatcher(),
    KernelMatcher(),
    SyslogTimeMatcher(),
    FallbackMatcher(),
)


def _is_present(value: Any) -> bool:
    return value is not None and value != ''


def _lookup(bag: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    for alias in aliases:
        if _is_present(bag.get(alias)):
            return bag[alias]
    lowered = {}
    for key, value in bag.items():
        if isinstance(key, str) and _is_present(value):
            lowered.setdefault(key.lower(), value)
    for alias in aliases:
        if alias.lower() in lowered:
            return lowered[alias.lower()]
    return None


def _as_text(value: Any) -> Optional[str]:
    if not _is_present(value):
        return None
    return value if isinstance(value, str) else str(value)


def _as_port(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not _is_present(value):
        return None
    try:
        port = int(str(value).strip())
    except ValueError:
        return None
    return port if 0 <= port <= 65535 else None


class RecordNormalizer:
    """Maps field bags onto LogRecord using the alias table."""

    def __init__(self, aliases: Optional[Mapping[str, Sequence[str]]] = None,
                 reference_year: Optional[int] = None):
        self.aliases = dict(aliases or FIELD_ALIASES)
        self.reference_year = reference_year

    def normalize(self, bag: Mapping[str, Any]) -> LogRecord:
        raw_time = _as_text(_lookup(bag, self.aliases['time']))
        raw = _as_text(bag.get('raw')) or json.dumps(bag, sort_keys=True, default=str)
        return LogRecord(
            raw=raw,
            source_ip=_as_text(_lookup(bag, self.aliases['source_ip'])),
            dest_ip=_as_text(_lookup(bag, self.aliases['dest_ip'])),
            raw_time=raw_time,
            parsed_time=resolve_timestamp(raw_time, self.reference_year) if raw_time else None,
            request=_as_text(_lookup(bag, self.aliases['request'])),
            status=_as_text(_lookup(bag, self.aliases['status'])),
            port=_as_port(_lookup(bag, self.aliases['port'])),
        )


class LineParser:
    """Runs a line through the matcher chain; the first match wins."""

    def __init__(self, matchers: Optional[Sequence[LineMatcher]] = None):
        self.matchers = tuple(DEFAULT_MATCHERS if matchers is None else matchers)

    def classify(self, line: str) -> Optional[Tuple[str, FieldBag]]:
        line = line.strip()
        if not line:
            return None
        for matcher in self.matchers:
            bag = matcher.match(line)
            if bag is not None:
                return matcher.name, bag
        # a custom chain without a fallback still keeps the line
        return 'raw', {'raw': line}

    def parse_line(self, line: str) -> Optional[FieldBag]:
        result = self.classify(line)
        return result[1] if result else None


class BatchParser:
    """Splits log text into lines and produces normalized records in order."""

    def __init__(self, line_parser: Optional[LineParser] = None,
                 normalizer: Optional[RecordNormalizer] = None,
                 reference_year: Optional[int] = None):
        self.line_parser = line_parser or LineParser()
        self.normalizer = normalizer or RecordNormalizer(reference_year=reference_year)

    def parse_text(self, text: str) -> List[LogRecord]:
        records: List[LogRecord] = []
        formats: Counter = Counter()
        lines = LINE_SPLIT.split(text) if text else []
        for line in lines:
            result = self.line_parser.classify(line)
            if result is None:
                continue
            name, bag = result
            formats[name] += 1
            records.append(self.normalizer.normalize(bag))
        logger.debug("Parsed %d records from %d lines (%s)",
                     len(records), len(lines), dict(formats))
        return records


def parse_line(line: str) -> Optional[FieldBag]:
    return LineParser().parse_line(line)


def normalize_record(bag: Mapping[str, Any], reference_year: Optional[int] = None) -> LogRecord:
    return RecordNormalizer(reference_year=reference_year).normalize(bag)


def parse_text(text: str, reference_year: Optional[int] = None) -> List[LogRecord]:
    return BatchParser(reference_year=reference_year).parse_text(text)
