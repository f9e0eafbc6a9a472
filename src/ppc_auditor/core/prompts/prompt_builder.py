"""
PromptBuilder for ppc_auditor.

This module provides a PromptBuilder class that constructs the prompts sent
to the language model for each audit operation.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


class PromptBuilder:
    """
    Builds prompts for the three audit operations.

    System prompts and user prompts are kept as named templates so they can be
    overridden per instance, either directly or from ``<name>_template.txt``
    files in a templates directory.
    """

    _DEFAULT_TEMPLATES = {
        "formatter_system": (
            "You are a data formatting specialist. Your output is always strictly "
            "raw CSV text that represents all of the provided data in a structured way."
        ),
        "analyst_system": """You are a world-class Paid Search Performance Analyst.
You find efficiency and growth opportunities in PPC campaigns.

Constraints that every piece of feedback must acknowledge:
1. MATCH TYPES: Only Exact Match is used. No other match types are available for optimization.
2. BUDGET CONTROL: Budget is controlled at the campaign level only.
3. CAMPAIGN STRUCTURE: A campaign usually holds several ad groups that share one budget.
   Moving spend in one ad group changes what is left for the others in the same campaign.

Benchmarks: average CTR 4%, average conversion rate (CVR) 5%.
Respect budget constraints at all times.
Categorize keywords as High-performing, Average-performing or Underperforming.
Explain the metrics behind every categorization.""",
        "sanitize": """The text below is keyword data copied or scraped from a PPC interface and may be messy.
Extract it and convert it into a valid, complete CSV table.

CORE COLUMNS: Keyword, Impressions, Clicks, CTR, Conversions, CVR, CPC, Cost.
EXTENDED COLUMNS: Also keep every other performance column present in the input,
such as Revenue, Profit, ROAS or Impression Share.

RULES:
1. Calculate missing core columns when they can be derived (for example Cost = Clicks * CPC).
2. Never drop a data column that was present in the input.
3. Use "0" or "N/A" for missing values.

DATA:
{raw_text}

OUTPUT: Return ONLY the raw CSV content, with no markdown code fences and no preamble.""",
        "analyze": """Keyword Performance Analysis.

DATA:
{structured_text}

INSTRUCTIONS:
1. Review Impressions, CTR, Clicks, Conversions, CVR, Cost and CPC, plus Revenue or Profit where available.
2. Categorize keywords as High, Average or Underperforming against the benchmarks (4% CTR, 5% CVR).
3. Take budget efficiency and overall ROI into account.
4. State explicitly that the keywords are Exact Match only and that budget changes are limited by campaign-level controls.
5. Finish with a clear summary.

Format the answer as clean markdown using '#', '##' and '###' headings.""",
        "deep_dive": """Holistic Performance Deep Dive and Optimization Recommendations.

KEYWORD DATA:
{keywords_text}

AD COPY:
{ad_copy_text}

LANDING PAGE CONTENT:
{landing_page_text}

INSTRUCTIONS:
1. FULL-FUNNEL ANALYSIS: check alignment from search intent to keywords, ad messaging and landing page content.
2. Separate profitable conversions from wasted spend.
3. GAPS: show where the messaging fails to match user intent.
4. RECOMMENDATIONS:
   - Keyword actions (pause or delete, lower or raise bids, ROI priorities).
   - Ad copy: improvement tips and one revised ad written for the high-performing keywords.
   - Landing page: messaging improvements and one revised product description of at most 90 words.
5. STRATEGIC CONTEXT: note that every keyword is Exact Match, so performance depends on the intent of those exact terms,
   and that budget is controlled at the campaign level and may be shared with other ad groups.
6. SUMMARY: one paragraph on overall performance ending with the line
   "Overall Performance Score: N/10" where N is a whole number from 1 to 10.

Use '#', '##' and '###' headings and '-' bullet points.""",
    }

    def __init__(
        self,
        templates: Optional[Dict[str, str]] = None,
        templates_dir: Optional[Union[str, Path]] = None,
        max_prompt_size: int = 120000,
    ):
        """
        Initialize the PromptBuilder.

        Args:
            templates: Custom templates dictionary (overrides default templates)
            templates_dir: Directory containing ``<name>_template.txt`` files
            max_prompt_size: Maximum size (in chars) of generated prompts
        """
        self.templates = self._DEFAULT_TEMPLATES.copy()

        if templates:
            self.templates.update(templates)

        self.templates_dir: Optional[Path] = None
        if templates_dir:
            self.templates_dir = Path(templates_dir)
            if self.templates_dir.is_dir():
                self._load_templates_from_dir()
            else:
                logger.warning(f"Templates directory not found: {templates_dir}")
                self.templates_dir = None

        self.max_prompt_size = max_prompt_size
        logger.debug("PromptBuilder initialized with max prompt size: %d", max_prompt_size)

    def _load_templates_from_dir(self) -> None:
        """Load templates from the templates directory if available."""
        for template_name in list(self.templates.keys()):
            template_file = self.templates_dir / f"{template_name}_template.txt"
            if template_file.exists():
                self.templates[template_name] = template_file.read_text(encoding="utf-8")
                logger.debug("Loaded %s template from %s", template_name, template_file)

    def _template(self, name: str) -> str:
        template = self.templates.get(name)
        if not template:
            logger.warning(f"Template '{name}' not found, using default")
            template = self._DEFAULT_TEMPLATES[name]
        return template

    @property
    def formatter_system_prompt(self) -> str:
        """System instruction used for the sanitize step."""
        return self._template("formatter_system")

    @property
    def analyst_system_prompt(self) -> str:
        """System instruction used for the analysis and deep-dive steps."""
        return self._template("analyst_system")

    def build_sanitize_prompt(self, raw_text: str) -> str:
        """
        Build the prompt that turns raw keyword data into CSV.

        Args:
            raw_text: Keyword data as provided by the user

        Returns:
            Formatted prompt string for the LLM
        """
        prompt = self._template("sanitize").format(raw_text=raw_text)
        return self._truncate_prompt_if_needed(prompt)

    def build_analysis_prompt(self, structured_text: str) -> str:
        """
        Build the keyword performance analysis prompt.

        Args:
            structured_text: The approved sanitized table

        Returns:
            Formatted prompt string for the LLM
        """
        prompt = self._template("analyze").format(structured_text=structured_text)
        return self._truncate_prompt_if_needed(prompt)

    def build_deep_dive_prompt(
        self, keywords_text: str, ad_copy_text: str, landing_page_text: str
    ) -> str:
        """Build the full-funnel deep-dive prompt."""
        prompt = self._template("deep_dive").format(
            keywords_text=keywords_text or "Not available",
            ad_copy_text=ad_copy_text or "Not available",
            landing_page_text=landing_page_text or "Not available",
        )
        return self._truncate_prompt_if_needed(prompt)

    def _truncate_prompt_if_needed(self, prompt: str) -> str:
        """
        Truncate the prompt if it exceeds the maximum size.

        The head and the tail are kept so the instructions that close each
        template survive.
        """
        if len(prompt) <= self.max_prompt_size:
            return prompt

        logger.warning(
            "Prompt exceeds maximum size (%d > %d). Truncating.",
            len(prompt),
            self.max_prompt_size,
        )

        truncation_message = "\n...[CONTENT TRUNCATED DUE TO SIZE LIMITS]...\n"
        available_size = self.max_prompt_size - len(truncation_message)
        keep_each_side = available_size // 2

        return prompt[:keep_each_side] + truncation_message + prompt[-keep_each_side:]
