"""Log Triage - Core analysis engine"""

import logging
import threading
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

from rich.progress import Progress, SpinnerColumn, TextColumn

from .detector import AnomalyDetector
from .errors import LogInputError
from .models import AnalysisResult, DetectionConfig
from .parser import BatchParser

logger = logging.getLogger(__name__)


def decode_input(data: Union[str, bytes]) -> str:
    """Return log text; bytes must be UTF-8 (a leading BOM is dropped)."""
    if isinstance(data, str):
        return data
    if isinstance(data, (bytes, bytearray)):
        try:
            return bytes(data).decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise LogInputError(f"Log data is not valid UTF-8 text: {e}") from e
    raise LogInputError(f"Expected log text, got {type(data).__name__}")


class LogAnalyzer:
    """Main log analyzer class"""

    def __init__(self, config: Optional[DetectionConfig] = None, console=None,
                 reference_year: Optional[int] = None, max_workers: int = 1):
        self.config = config or DetectionConfig()
        self.console = console
        self.parser = BatchParser(reference_year=reference_year)
        self.detector = AnomalyDetector(self.config, max_workers=max_workers)

    def analyze_text(self, data: Union[str, bytes], now: Optional[datetime] = None,
                     cancel_event: Optional[threading.Event] = None) -> AnalysisResult:
        text = decode_input(data)
        records = self.parser.parse_text(text)
        return self.detector.detect(records, now=now, cancel_event=cancel_event)

    def analyze_file(self, filepath: str, now: Optional[datetime] = None,
                     cancel_event: Optional[threading.Event] = None) -> AnalysisResult:
        path = Path(filepath)
        if not path.is_file():
            raise FileNotFoundError(f"Log file not found: {filepath}")

        data = path.read_bytes()
        logger.info("Read %d bytes from %s", len(data), path)

        if self.console:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=self.console,
                transient=True
            ) as progress:
                progress.add_task("Analyzing logs...", total=None)
                return self.analyze_text(data, now=now, cancel_event=cancel_event)
        return self.analyze_text(data, now=now, cancel_event=cancel_event)

    def generate_report(self, result: AnalysisResult) -> Dict:
        ip_stats = Counter(r.source_ip for r in result.records if r.source_ip)
        status_stats = Counter(r.status for r in result.records if r.status)

        return {
            'summary': {
                'total_records': result.total,
                'unique_ips': len(ip_stats),
                'resolved_times': sum(1 for r in result.records if r.parsed_time),
                'brute_force': len(result.brute_force),
                'port_scans': len(result.port_scans),
                'blacklisted': len(result.blacklisted),
            },
            'findings': {
                'brute_force': [f.to_dict() for f in result.brute_force],
                'port_scans': [f.to_dict() for f in result.port_scans],
                'blacklisted': [f.to_dict() for f in result.blacklisted],
            },
            'top_ips': dict(ip_stats.most_common(10)),
            'status_codes': dict(status_stats.most_common()),
        }
