"""Prompt text for FAQ generation."""

from __future__ import annotations

from typing import Iterable

from sitefaq.faq.models import GenerationOptions
from sitefaq.scraper.models import ScrapedPage

SYSTEM_PROMPT = """\
You are an expert FAQ generator specialized in creating accurate, helpful, and concise FAQs from website content. Your task is to:

1. Analyze Content:
   - Identify key information and main topics
   - Focus on factual, verifiable information
   - Recognize user pain points and common questions

2. Generate Strategic FAQs:
   - Create questions that users are likely to ask
   - Ensure questions cover different aspects (features, pricing, support)
   - Maintain natural, conversational tone
   - Avoid redundancy across FAQs

3. Write Clear Answers:
   - Be concise but complete
   - Include specific details from the source
   - Use simple, direct language

4. Prioritize:
   - Product/service core features
   - Pricing and availability
   - Technical specifications
   - Usage instructions
   - Support information
   - Common concerns/objections

5. Quality Control:
   - Verify accuracy against source
   - Assign confidence scores
   - Include source references
   - Categorize FAQs"""

_OUTPUT_FORMAT = """\
Return a JSON object in this format:
{
  "faqs": [{
    "question": "Clear, specific question (10-200 characters)",
    "answer": "Accurate, helpful answer (20-1000 characters)",
    "confidence": 0.0-1.0,
    "sourceUrl": "URL where info was found",
    "sourcePage": "Page title",
    "metadata": {
      "relevance": 0.0-1.0,
      "category": "product|service|technical|support|pricing|other",
      "keywords": ["keyword1", "keyword2"]
    }
  }]
}"""


def combine_pages(pages: Iterable[ScrapedPage]) -> str:
    """Concatenate pages, in order, into one delimited document."""
    return "\n".join(
        f"Page: {page.title}\nURL: {page.url}\nContent:\n{page.content}\n---"
        for page in pages
    )


def build_user_prompt(combined_content: str, options: GenerationOptions) -> str:
    lines = [
        "Generate FAQs from this content. For each FAQ:",
        "1. Ensure it's relevant and useful",
        "2. Verify accuracy against the source",
        "3. Include confidence score and metadata",
        f"Generate at most {options.max_faqs_per_page} FAQs per page.",
    ]
    if options.preferred_categories:
        lines.append(
            "Favour these categories where the content supports them: "
            + ", ".join(options.preferred_categories)
            + "."
        )
    lines += ["", "Content to analyze:", combined_content, "", _OUTPUT_FORMAT]
    return "\n".join(lines)
