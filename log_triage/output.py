"""Log Triage - Report output"""

import json
from typing import Dict

from rich import box
from rich.panel import Panel
from rich.table import Table


def _findings_table(title: str, rows, columns) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    for name, style in columns:
        table.add_column(name, style=style)
    for row in rows:
        table.add_row(*(str(v) if v is not None else '-' for v in row))
    return table


def print_report(report: Dict, console=None):
    if console is None:
        print(json.dumps(report, indent=2))
        return

    console.print("\n" + "═" * 70, style="cyan")
    console.print("              LOG TRIAGE REPORT", style="bold cyan")
    console.print("═" * 70, style="cyan")

    # Summary
    summary = report['summary']
    flagged = summary['brute_force'] + summary['port_scans'] + summary['blacklisted']
    console.print(Panel.fit(
        f"Total Records: [cyan]{summary['total_records']:,}[/]\n"
        f"Unique IPs: [cyan]{summary['unique_ips']:,}[/]\n"
        f"Resolved Times: [cyan]{summary['resolved_times']:,}[/]\n"
        f"Findings: [{'red' if flagged else 'green'}]{flagged:,}[/]",
        title="Summary",
        border_style="cyan"
    ))

    findings = report['findings']
    if findings['brute_force']:
        console.print("\n" + "─" * 70, style="cyan")
        console.print(_findings_table(
            "BRUTE FORCE",
            [(f['ip'], f['attempts'], f['first_seen']) for f in findings['brute_force']],
            [("IP Address", "red"), ("Attempts", "yellow"), ("First Seen", "white")],
        ))

    if findings['port_scans']:
        console.print("\n" + "─" * 70, style="cyan")
        console.print(_findings_table(
            "PORT SCANS",
            [(f['ip'], f['unique_ports'], f['first_seen'], ', '.join(map(str, f['sample_ports'])))
             for f in findings['port_scans']],
            [("IP Address", "red"), ("Unique Ports", "yellow"), ("First Seen", "white"), ("Sample", "white")],
        ))

    if findings['blacklisted']:
        console.print("\n" + "─" * 70, style="cyan")
        console.print(_findings_table(
            "BLACKLISTED",
            [(f['ip'], f['count']) for f in findings['blacklisted']],
            [("IP Address", "red bold"), ("Records", "yellow")],
        ))

    # Top IPs
    if report['top_ips']:
        console.print("\n" + "─" * 70, style="cyan")
        console.print(_findings_table(
            "TOP IPs (by records)",
            list(report['top_ips'].items()),
            [("IP Address", "cyan"), ("Records", "white")],
        ))

    console.print("\n" + "═" * 70, style="cyan")
