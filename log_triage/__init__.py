"""Log Triage package"""

from .patterns import VERSION
from .errors import DetectionCancelled, LogInputError, LogTriageError
from .models import (
    AnalysisResult, BlacklistFinding, BruteForceFinding, DetectionConfig, LogRecord, PortScanFinding,
)
from .timestamps import resolve_timestamp
from .parser import BatchParser, LineParser, RecordNormalizer, normalize_record, parse_line, parse_text
from .detector import AnomalyDetector, detect_anomalies
from .analyzer import LogAnalyzer
from .output import print_report

__all__ = [
    'VERSION', 'LogAnalyzer', 'LogRecord', 'DetectionConfig', 'AnalysisResult',
    'BruteForceFinding', 'PortScanFinding', 'BlacklistFinding',
    'LogTriageError', 'LogInputError', 'DetectionCancelled',
    'resolve_timestamp', 'parse_line', 'normalize_record', 'parse_text',
    'LineParser', 'RecordNormalizer', 'BatchParser',
    'AnomalyDetector', 'detect_anomalies', 'print_report',
]
