"""Log Triage - Constants and patterns"""

import re

VERSION = "1.0.0"

IP_PATTERN = r"\d{1,3}(?:\.\d{1,3}){3}"

# Line format patterns, tried by the parser in this order
JSON_OBJECT = re.compile(r"^\{.*\}$", re.DOTALL)
CSV_LEADING_IP = re.compile(r"^\d+\.\d+\.\d+\.\d+$")
CLF_LINE = re.compile(r'^(?P<ip>\S+) \S+ \S+ \[(?P<time>[^\]]*)\] "(?P<request>[^"]*)" (?P<status>\d{3}) (?:\d+|-)$')
KEY_VALUE = re.compile(r"(\w+)=(\S+)")
SYSLOG_INTRUSION = re.compile(r"from (?P<ip>" + IP_PATTERN + r") port (?P<port>\d+)")
KERNEL_FIREWALL = re.compile(r"SRC=(?P<ip>" + IP_PATTERN + r").*DPT=(?P<port>\d+)")
SYSLOG_PREFIX = re.compile(r"^[A-Z][a-z]{2}\s{1,2}\d{1,2} \d{2}:\d{2}:\d{2}")
ANY_IP = re.compile(r"(" + IP_PATTERN + r")")

# Timestamp layouts
CLF_TIME_FORMAT = "%d/%b/%Y:%H:%M:%S %z"
SYSLOG_TIME_FORMAT = "%b %d %H:%M:%S %Y"

# Canonical field <- aliases, first present alias wins
FIELD_ALIASES = {
    'source_ip': ('source_ip', 'srcIP', 'ip', 'client', 'src', 'source'),
    'dest_ip': ('dest_ip', 'destIP', 'dst', 'destination', 'server', 'dest'),
    'time': ('raw_time', 'time', 'timestamp', 'ts', 'date'),
    'request': ('request', 'method', 'msg'),
    'status': ('status', 'code', 'result'),
    'port': ('port', 'destination_port', 'dpt'),
}

# Status text counted as a failed login
FAILURE_SUBSTRINGS = ('fail', 'unauthorized')
FAILURE_CODES = ('401', '403')

UNKNOWN_IP = 'unknown'

DEFAULT_BLACKLIST = ('203.0.113.45', '198.51.100.23')
DEFAULT_BRUTE_FORCE_WINDOW_MINUTES = 10
DEFAULT_BRUTE_FORCE_THRESHOLD = 5
DEFAULT_PORT_SCAN_WINDOW_MINUTES = 5
SAMPLE_PORTS = 10
