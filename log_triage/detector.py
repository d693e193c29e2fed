"""Log Triage - Anomaly detection

Both windowed heuristics scan forward from each record of an address and
stop at the first window that reaches the threshold. The attempt count
reported is that window's count, not the largest one in the batch, and
only one finding is made per address. Worst case is quadratic in the
number of records for a single address.

Records whose time could not be resolved are placed at ``now``, or at the
latest resolved time in the batch when that is later: after all
resolved records, simultaneous with each other, in input order.
"""

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .errors import DetectionCancelled
from .models import (
    AnalysisResult, BlacklistFinding, BruteForceFinding, DetectionConfig, LogRecord, PortScanFinding,
)
from .patterns import SAMPLE_PORTS, UNKNOWN_IP

logger = logging.getLogger(__name__)

T = TypeVar('T')


def group_by_ip(records: Iterable[LogRecord]) -> Dict[str, List[LogRecord]]:
    """Group records by source address, keeping first-seen order of addresses."""
    groups: Dict[str, List[LogRecord]] = {}
    for record in records:
        groups.setdefault(record.source_ip or UNKNOWN_IP, []).append(record)
    return groups


def _timeline(records: Iterable[LogRecord], now: datetime) -> List[Tuple[datetime, LogRecord]]:
    ordered = sorted(records, key=lambda r: (r.parsed_time or now, r.parsed_time is None))
    return [(r.parsed_time or now, r) for r in ordered]


def _first_window(timeline: Sequence[Tuple[datetime, T]], window: timedelta,
                  measure: Callable[[Sequence[T]], int], threshold: int):
    """Return (start, items) for the first window whose measure reaches threshold."""
    for i, (start, _) in enumerate(timeline):
        items = []
        for when, item in timeline[i:]:
            if when - start > window:
                break
            items.append(item)
        if measure(items) >= threshold:
            return start, items
    return None


class AnomalyDetector:
    """Runs the brute-force, port-scan and blacklist heuristics over a batch."""

    def __init__(self, config: Optional[DetectionConfig] = None, max_workers: int = 1):
        self.config = config or DetectionConfig()
        self.max_workers = max_workers

    def brute_force(self, ip: str, records: Sequence[LogRecord], now: datetime) -> Optional[BruteForceFinding]:
        is_failure = self.config.is_failure
        hit = _first_window(
            _timeline(records, now),
            self.config.brute_force_window,
            lambda items: sum(1 for r in items if is_failure(r.status)),
            self.config.brute_force_threshold,
        )
        if hit is None:
            return None
        start, items = hit
        attempts = sum(1 for r in items if is_failure(r.status))
        return BruteForceFinding(ip=ip, attempts=attempts, first_seen=start if items[0].parsed_time else None)

    def port_scan(self, ip: str, records: Sequence[LogRecord], now: datetime) -> Optional[PortScanFinding]:
        threshold = self.config.port_scan_threshold
        with_ports = [r for r in records if r.port is not None]
        if threshold is None or not with_ports:
            return None
        hit = _first_window(
            _timeline(with_ports, now),
            self.config.port_scan_window,
            lambda items: len({r.port for r in items}),
            threshold,
        )
        if hit is None:
            return None
        start, items = hit
        ports = sorted({r.port for r in items})
        return PortScanFinding(
            ip=ip,
            unique_ports=len(ports),
            first_seen=start if items[0].parsed_time else None,
            sample_ports=tuple(ports[:SAMPLE_PORTS]),
        )

    def blacklist(self, records: Iterable[LogRecord]) -> List[BlacklistFinding]:
        seen = Counter(r.source_ip for r in records if r.source_ip)
        return [BlacklistFinding(ip=ip, count=seen[ip]) for ip in self.config.blacklist if seen[ip]]

    def detect(self, records: Sequence[LogRecord], now: Optional[datetime] = None,
               cancel_event: Optional[threading.Event] = None) -> AnalysisResult:
        """Run all heuristics; results are identical for any worker count."""
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        # unresolved times must not sort before any resolved one
        now = max([now] + [r.parsed_time for r in records if r.parsed_time])
        groups = group_by_ip(records)
        if self.config.port_scan_threshold is None:
            logger.warning("Port-scan detection disabled: no unique-port threshold configured")

        def scan(item):
            if cancel_event is not None and cancel_event.is_set():
                raise DetectionCancelled("Detection cancelled")
            ip, group = item
            return self.brute_force(ip, group, now), self.port_scan(ip, group, now)

        if self.max_workers > 1 and len(groups) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                scans = list(executor.map(scan, groups.items()))
        else:
            scans = [scan(item) for item in groups.items()]

        result = AnalysisResult(
            records=list(records),
            brute_force=[bf for bf, _ in scans if bf is not None],
            port_scans=[ps for _, ps in scans if ps is not None],
            blacklisted=self.blacklist(records),
        )
        for finding in result.brute_force:
            logger.info("Brute force from %s: %d failed attempts", finding.ip, finding.attempts)
        for finding in result.port_scans:
            logger.info("Port scan from %s: %d unique ports", finding.ip, finding.unique_ports)
        for finding in result.blacklisted:
            logger.info("Blacklisted address %s seen %d times", finding.ip, finding.count)
        logger.debug("Scanned %d addresses over %d records", len(groups), len(records))
        return result


def detect_anomalies(records: Sequence[LogRecord], config: Optional[DetectionConfig] = None,
                     now: Optional[datetime] = None) -> AnalysisResult:
    return AnomalyDetector(config).detect(records, now=now)
