import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

import pandas as pd

from ..database import TrainingDataService

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    'result_id', 'created_at', 'employee_id', 'employee_name', 'department',
    'sim_type', 'difficulty', 'campaign_id', 'campaign_name',
    'is_correct', 'response_time', 'feedback'
]


class ReportExporter:
    """Exports training results and dashboard tables to a timestamped directory."""

    def __init__(self, data_service: TrainingDataService, output_dir: str = "results/reports"):
        self.data_service = data_service
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.results_dir = Path(output_dir) / self.timestamp

    def results_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.data_service.get_all_results(), columns=RESULT_COLUMNS)

    @staticmethod
    def calculate_metrics(results: pd.DataFrame) -> Dict[str, Any]:
        """
        Summarise results overall, per department and per simulation type.

        Args:
            results: Frame with at least is_correct, response_time, department and sim_type

        Returns:
            Dictionary of metrics; rates are fractions between 0 and 1
        """
        total = len(results)
        if total == 0:
            return {
                'total_results': 0,
                'correct': 0,
                'compromised': 0,
                'pass_rate': 0.0,
                'avg_response_time': 0.0,
                'by_department': {},
                'by_sim_type': {}
            }

        correct = int(results['is_correct'].astype(bool).sum())

        def breakdown(column: str) -> Dict[str, Any]:
            grouped = results.assign(is_correct=results['is_correct'].astype(bool)) \
                .groupby(results[column].fillna('unknown'))
            table = grouped.agg(
                total=('is_correct', 'size'),
                correct=('is_correct', 'sum'),
                avg_response_time=('response_time', 'mean')
            )
            table['pass_rate'] = table['correct'] / table['total']
            return {
                str(name): {
                    'total': int(row['total']),
                    'correct': int(row['correct']),
                    'pass_rate': round(float(row['pass_rate']), 4),
                    'avg_response_time': round(float(row['avg_response_time']), 2)
                }
                for name, row in table.iterrows()
            }

        return {
            'total_results': total,
            'correct': correct,
            'compromised': total - correct,
            'pass_rate': round(correct / total, 4),
            'avg_response_time': round(float(results['response_time'].mean()), 2),
            'by_department': breakdown('department'),
            'by_sim_type': breakdown('sim_type')
        }

    def export(self, include_summary_report: bool = True) -> Dict[str, Any]:
        """
        Write results, departments and campaigns to CSV plus a JSON summary.

        Returns:
            Dictionary with the paths written and the computed metrics
        """
        self.results_dir.mkdir(parents=True, exist_ok=True)

        results = self.results_frame()
        results_path = self.results_dir / "results.csv"
        results.to_csv(results_path, index=False)

        departments_path = self.results_dir / "departments.csv"
        pd.DataFrame([d.model_dump() for d in self.data_service.get_departments()]) \
            .to_csv(departments_path, index=False)

        campaigns_path = self.results_dir / "campaigns.csv"
        pd.DataFrame([c.model_dump(mode='json') for c in self.data_service.get_campaigns()]) \
            .to_csv(campaigns_path, index=False)

        metrics = self.calculate_metrics(results)
        summary = {
            'timestamp': self.timestamp,
            'overview': self.data_service.get_admin_overview().model_dump(),
            'metrics': metrics,
            'results_directory': str(self.results_dir)
        }
        summary_path = self.results_dir / "summary.json"
        with open(summary_path, 'w') as f:
            json.dump(summary, f, indent=2)

        paths = {
            'results_directory': str(self.results_dir),
            'results_path': str(results_path),
            'departments_path': str(departments_path),
            'campaigns_path': str(campaigns_path),
            'summary_path': str(summary_path),
            'metrics': metrics
        }

        if include_summary_report:
            report_path = self.results_dir / "summary_report.txt"
            report_path.write_text(self.create_summary_report(metrics))
            paths['report_path'] = str(report_path)

        logger.info(f"Exported {metrics['total_results']} results to {self.results_dir}")
        return paths

    def create_summary_report(self, metrics: Dict[str, Any], title: Optional[str] = None) -> str:
        """Create a human-readable summary report"""
        report_lines = [
            "=" * 80,
            title or "SECURITY AWARENESS TRAINING REPORT",
            "=" * 80,
            f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            "OVERALL:",
            f"- Results recorded: {metrics.get('total_results', 0)}",
            f"- Reported correctly: {metrics.get('correct', 0)}",
            f"- Compromised: {metrics.get('compromised', 0)}",
            f"- Pass rate: {metrics.get('pass_rate', 0):.2%}",
            f"- Average response time: {metrics.get('avg_response_time', 0):.0f} ms",
            ""
        ]

        for heading, key in (("BY DEPARTMENT:", 'by_department'), ("BY SIMULATION TYPE:", 'by_sim_type')):
            groups = metrics.get(key) or {}
            if not groups:
                continue
            report_lines.append(heading)
            for name, group in groups.items():
                report_lines.append(
                    f"- {name}: {group['correct']}/{group['total']} passed ({group['pass_rate']:.2%})"
                )
            report_lines.append("")

        report_lines.append("=" * 80)
        return "\n".join(report_lines)
