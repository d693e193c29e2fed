"""Log Triage - Data models"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .patterns import (
    DEFAULT_BLACKLIST, DEFAULT_BRUTE_FORCE_THRESHOLD, DEFAULT_BRUTE_FORCE_WINDOW_MINUTES,
    DEFAULT_PORT_SCAN_WINDOW_MINUTES, FAILURE_CODES, FAILURE_SUBSTRINGS,
)


@dataclass(frozen=True)
class LogRecord:
    """Normalized log record"""
    raw: str
    source_ip: Optional[str] = None
    dest_ip: Optional[str] = None
    raw_time: Optional[str] = None
    parsed_time: Optional[datetime] = None
    request: Optional[str] = None
    status: Optional[str] = None
    port: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_ip': self.source_ip,
            'dest_ip': self.dest_ip,
            'raw_time': self.raw_time,
            'parsed_time': self.parsed_time.isoformat() if self.parsed_time else None,
            'request': self.request,
            'status': self.status,
            'port': self.port,
            'raw': self.raw,
        }


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class BruteForceFinding:
    """Burst of failed logins from one address"""
    ip: str
    attempts: int
    first_seen: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'ip': self.ip, 'attempts': self.attempts, 'first_seen': _iso(self.first_seen)}


@dataclass(frozen=True)
class PortScanFinding:
    """Many distinct destination ports touched by one address"""
    ip: str
    unique_ports: int
    first_seen: Optional[datetime] = None
    sample_ports: Tuple[int, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ip': self.ip,
            'unique_ports': self.unique_ports,
            'first_seen': _iso(self.first_seen),
            'sample_ports': list(self.sample_ports),
        }


@dataclass(frozen=True)
class BlacklistFinding:
    """Known-bad address seen in the batch"""
    ip: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {'ip': self.ip, 'count': self.count}


@dataclass(frozen=True)
class DetectionConfig:
    """Thresholds and windows for the anomaly detector.

    ``port_scan_threshold`` has no built-in default; leaving it as ``None``
    turns the port-scan heuristic off.
    """
    brute_force_window: timedelta = timedelta(minutes=DEFAULT_BRUTE_FORCE_WINDOW_MINUTES)
    brute_force_threshold: int = DEFAULT_BRUTE_FORCE_THRESHOLD
    port_scan_window: timedelta = timedelta(minutes=DEFAULT_PORT_SCAN_WINDOW_MINUTES)
    port_scan_threshold: Optional[int] = None
    blacklist: Tuple[str, ...] = DEFAULT_BLACKLIST
    failure_substrings: Tuple[str, ...] = FAILURE_SUBSTRINGS
    failure_codes: Tuple[str, ...] = FAILURE_CODES

    def __post_init__(self):
        if self.brute_force_window <= timedelta(0):
            raise ValueError("brute_force_window must be positive")
        if self.port_scan_window <= timedelta(0):
            raise ValueError("port_scan_window must be positive")
        if self.brute_force_threshold < 1:
            raise ValueError("brute_force_threshold must be at least 1")
        if self.port_scan_threshold is not None and self.port_scan_threshold < 1:
            raise ValueError("port_scan_threshold must be at least 1")
        # accept any iterable of addresses but store a tuple
        blacklist = (self.blacklist,) if isinstance(self.blacklist, str) else tuple(self.blacklist)
        object.__setattr__(self, 'blacklist', blacklist)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> 'DetectionConfig':
        """Build a config from plain values; windows are given in minutes."""
        kwargs: Dict[str, Any] = {}
        for key in ('brute_force_window', 'port_scan_window'):
            if options.get(key) is not None:
                kwargs[key] = timedelta(minutes=float(options[key]))
        for key in ('brute_force_threshold', 'port_scan_threshold'):
            if options.get(key) is not None:
                kwargs[key] = int(options[key])
        if options.get('blacklist') is not None:
            kwargs['blacklist'] = options['blacklist']
        return cls(**kwargs)

    def is_failure(self, status: Optional[str]) -> bool:
        text = (status or '').lower()
        return text in self.failure_codes or any(s in text for s in self.failure_substrings)


@dataclass
class AnalysisResult:
    """Records and findings from one parse-and-detect run"""
    records: List[LogRecord] = field(default_factory=list)
    brute_force: List[BruteForceFinding] = field(default_factory=list)
    port_scans: List[PortScanFinding] = field(default_factory=list)
    blacklisted: List[BlacklistFinding] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.records)
