"""Input parsers for article exports."""

from .json_parser import load_articles, parse_articles_json, parse_timestamp

__all__ = ["load_articles", "parse_articles_json", "parse_timestamp"]
