from .report_exporter import ReportExporter

__all__ = ['ReportExporter']
