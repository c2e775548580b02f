"""Observers and artefact writers for training runs."""

from .artifacts import write_manifest
from .console import ConsoleProgress, progress_bar
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter

__all__ = ["ConsoleProgress", "CsvSink", "JsonlSink", "PlotAdapter", "progress_bar", "write_manifest"]
