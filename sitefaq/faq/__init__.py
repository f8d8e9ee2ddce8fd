"""FAQ extraction pipeline package."""

from sitefaq.faq.generator import generate_faqs, parse_response
from sitefaq.faq.llm import LangChainGenerator, TextGenerator
from sitefaq.faq.models import FAQRecord, FAQResult, FAQStats, GenerationOptions

__all__ = [
    "generate_faqs",
    "parse_response",
    "LangChainGenerator",
    "TextGenerator",
    "FAQRecord",
    "FAQResult",
    "FAQStats",
    "GenerationOptions",
]
