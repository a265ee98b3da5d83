"""Tabular I/O module for the AI Dataset Preprocessor."""

from .tabular_parser import parse_file_content, parse_csv
from .serializer import data_to_csv, export_data, to_json_text, to_plain_text

__all__ = [
    "parse_file_content",
    "parse_csv",
    "data_to_csv",
    "export_data",
    "to_json_text",
    "to_plain_text",
]
