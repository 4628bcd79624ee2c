from netrecon.output.reporters.base import BaseReporter
from netrecon.output.reporters.plain_reporter import PlainReporter
from netrecon.output.reporters.rich_reporter import RichReporter

__all__ = ["BaseReporter", "PlainReporter", "RichReporter"]
