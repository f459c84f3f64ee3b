"""Prompt registries for refinement, suggestions and enrichment.

Every registry is a read-only mapping built once at import time. Templates
use ``str.format`` placeholders and are filled by ``render_prompt``; any
placeholder missing from the supplied context is replaced with the entry's
default instead of raising.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

ENRICHMENT_ARRAY_LIMIT = 4


class _PromptContext(dict[str, Any]):
    """format_map helper that fills unknown placeholders with a default."""

    def __init__(self, values: Mapping[str, Any], default: str) -> None:
        super().__init__(values)
        self._default = default

    def __missing__(self, key: str) -> str:
        return self._default


def _stringify(value: Any, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]
        return ", ".join(items) if items else default
    text = str(value).strip()
    return text or default


def render_prompt(
    template: str,
    values: Mapping[str, Any],
    default: str = "N/A",
    defaults: Mapping[str, str] | None = None,
) -> str:
    """Fill a template, substituting defaults for absent or blank values."""
    fallbacks = defaults or {}
    prepared = {
        key: _stringify(value, fallbacks.get(key, default))
        for key, value in values.items()
    }
    for key, fallback in fallbacks.items():
        prepared.setdefault(key, fallback)
    return template.format_map(_PromptContext(prepared, default))


# ---------------------------------------------------------------------------
# Field refinement
# ---------------------------------------------------------------------------

_POLISH_SUFFIX = "Return ONLY the refined {label}. No explanation, just the improved text."


@dataclass(frozen=True)
class RefinementPrompt:
    """Template for polishing one user-supplied value."""

    template: str
    returns_list: bool = False


def _scalar(intro: str, context_line: str, rules: list[str], label: str) -> RefinementPrompt:
    bullet_rules = "\n".join(f"- {rule}" for rule in rules)
    return RefinementPrompt(
        template=(
            f'{intro}: "{{value}}"\n\n'
            f"Context: {context_line}\n\n"
            f"Make it:\n{bullet_rules}\n\n"
            + _POLISH_SUFFIX.format(label=label)
        )
    )


REFINEMENT_PROMPTS: Mapping[str, RefinementPrompt] = MappingProxyType(
    {
        "productName": RefinementPrompt(
            template=(
                'Refine this product name to be more professional and market-ready: "{value}". '
                "Consider the company context: {companyName}, domain: {domain}.\n\n"
                "Return ONLY the refined product name. No explanation, no quotes, just the improved name."
            )
        ),
        "productDescription": _scalar(
            "Improve this product description to be more compelling and professional",
            "Company: {companyName}, Domain: {domain}",
            ["Clear and concise (2-3 sentences max)", "Professional and engaging", "Value-focused", "Free of jargon"],
            "description",
        ),
        "valueProposition": _scalar(
            "Refine this value proposition to be more compelling and specific",
            "Company: {companyName}, Product: {productName}",
            ["Clear and specific", "Benefit-focused (not feature-focused)", "Quantifiable where possible", "30-50 words max"],
            "value proposition",
        ),
        "personaName": _scalar(
            "Improve this persona name/title to be more professional and specific",
            "Industry: {industry}, Company Size: {companySize}",
            ["Professional job title format", "Specific and accurate", "Industry-appropriate"],
            "persona name",
        ),
        "segmentName": _scalar(
            "Refine this market segment name to be more descriptive and professional",
            "Company: {companyName}, Industry: {industry}",
            ["Descriptive and specific", "Include relevant firmographics (size, industry, etc.)", "Professional format"],
            "segment name",
        ),
        "useCaseDescription": _scalar(
            "Improve this use case description to be more specific and actionable",
            "Product: {productName}, Target: {targetAudience}",
            ["Specific and actionable", "Include the problem, solution, and outcome", "Customer-focused language", "1-2 sentences"],
            "use case",
        ),
        "painPoint": _scalar(
            "Refine this pain point to be more specific and compelling",
            "Persona: {personaTitle}, Industry: {industry}",
            ["Specific and concrete", "Business-impact focused", "Relatable to the target persona", "Quantifiable where possible"],
            "pain point",
        ),
        "goal": _scalar(
            "Improve this goal statement to be more specific and measurable",
            "Persona: {personaTitle}, Company Type: {companyType}",
            ["Specific and measurable", "Business-outcome focused", "Achievable and realistic", "Time-bound where appropriate"],
            "goal",
        ),
        "responsibility": _scalar(
            "Refine this responsibility to be more specific and professional",
            "Role: {personaTitle}, Department: {department}",
            ["Specific and actionable", "Professional language", "Role-appropriate", "Clear scope and impact"],
            "responsibility",
        ),
        "challenge": _scalar(
            "Improve this challenge description to be more specific and impactful",
            "Role: {personaTitle}, Industry: {industry}",
            ["Specific and concrete", "Business-impact focused", "Industry-relevant", "Solution-oriented (what they need to overcome it)"],
            "challenge",
        ),
        "feature": _scalar(
            "Refine this product feature to be more customer-benefit focused",
            "Product: {productName}, Target Users: {targetUsers}",
            ["Benefit-focused (what it enables, not just what it does)", "Customer-centric language", "Clear value delivery", "Concise and specific"],
            "feature",
        ),
        "differentiation": _scalar(
            "Improve this differentiation statement to be more compelling and specific",
            "Company: {companyName}, Competitors: {competitors}",
            ["Specific and unique", "Benefit-focused", "Competitive advantage clear", "Credible and defensible", "2-3 sentences max"],
            "differentiation",
        ),
        "objection": _scalar(
            "Refine this objection to be more realistic and specific",
            "Persona: {personaTitle}, Product: {productName}",
            ["Realistic and common", "Specific to the persona/situation", "Business-focused (budget, time, resources, etc.)", "Addressable with proper response"],
            "objection",
        ),
        "competitorAnalysis": _scalar(
            "Improve this competitor analysis to be more strategic and actionable",
            "Our Company: {companyName}, Market: {market}",
            ["Specific competitive advantages/disadvantages", "Strategic insights", "Actionable for sales/marketing", "Fact-based and objective"],
            "analysis",
        ),
        "caseStudy": _scalar(
            "Enhance this case study description to be more compelling and specific",
            "Product: {productName}, Industry: {industry}",
            ["Specific customer and situation", "Clear problem, solution, results", "Quantified outcomes where possible", "Credible and detailed"],
            "case study",
        ),
        "testimonial": _scalar(
            "Improve this testimonial to be more credible and impactful",
            "Customer Type: {customerType}, Use Case: {useCase}",
            ["Specific and detailed", "Credible language (not overly promotional)", "Include specific benefits/results", "Attribution-ready format"],
            "testimonial",
        ),
        "callToAction": _scalar(
            "Refine this call-to-action to be more compelling and specific",
            "Target: {targetAudience}, Stage: {buyingStage}",
            ["Action-oriented and specific", "Value-focused", "Urgency where appropriate", "Clear next step"],
            "CTA",
        ),
        "batchTextArray": RefinementPrompt(
            template=(
                "Improve this list of items to be more professional, specific, and consistent:\n\n"
                "{numberedItems}\n\n"
                "Context: Type: {itemType}, Domain: {domain}\n\n"
                "Make each item:\n"
                "- Professional and specific\n"
                "- Consistent in tone and format\n"
                "- Value-focused where appropriate\n"
                "- Clear and actionable\n\n"
                "Return ONLY a JSON array of the improved items. No explanation, no markdown, just the JSON array."
            ),
            returns_list=True,
        ),
    }
)

# Field -> refinement kind, per entity, for whole-object refinement.
OBJECT_REFINEMENT_FIELDS: Mapping[str, Mapping[str, str]] = MappingProxyType(
    {
        "product": MappingProxyType(
            {
                "name": "productName",
                "description": "productDescription",
                "valueProposition": "valueProposition",
                "problemsWithRootCauses": "batchTextArray",
                "features": "batchTextArray",
                "keyFeatures": "batchTextArray",
                "benefits": "batchTextArray",
                "useCases": "batchTextArray",
                "uniqueSellingPoints": "batchTextArray",
            }
        ),
        "persona": MappingProxyType(
            {
                "title": "personaName",
                "painPoints": "batchTextArray",
                "goals": "batchTextArray",
                "responsibilities": "batchTextArray",
                "challenges": "batchTextArray",
                "objections": "batchTextArray",
            }
        ),
        "segment": MappingProxyType(
            {
                "name": "segmentName",
                "description": "productDescription",
                "characteristics": "batchTextArray",
                "painPoints": "batchTextArray",
            }
        ),
    }
)


# ---------------------------------------------------------------------------
# Field suggestions
# ---------------------------------------------------------------------------

_ARRAY_SUFFIX = (
    "IMPORTANT: Return ONLY a valid JSON array of exactly 4 strings. "
    "No explanation, no markdown, just the JSON array."
)


@dataclass(frozen=True)
class SuggestionPrompt:
    """Template for suggesting values for one wizard field."""

    template: str
    returns_list: bool = True
    defaults: Mapping[str, str] = field(default_factory=dict)


def _list_prompt(ask: str, example: str, **defaults: str) -> SuggestionPrompt:
    return SuggestionPrompt(
        template=f"{ask}\n\n{_ARRAY_SUFFIX}\n\nExample format: {example}",
        defaults=MappingProxyType(defaults),
    )


def _text_prompt(ask: str, answer: str) -> SuggestionPrompt:
    return SuggestionPrompt(
        template=f"{ask}\n\nIMPORTANT: Return ONLY the {answer}. No JSON, no explanation, just the {answer}.",
        returns_list=False,
    )


SUGGESTION_PROMPTS: Mapping[str, SuggestionPrompt] = MappingProxyType(
    {
        "description": _text_prompt(
            'Based on the company domain "{domain}", write a concise 2-3 sentence product description '
            "that explains what the company does and their main value proposition. "
            "Focus on their core business and target market.",
            "description text",
        ),
        "category": _text_prompt(
            'Based on the company domain "{domain}" and description "{description}", suggest the most '
            "appropriate product category. Choose from common categories like: SaaS, Healthcare, Fintech, "
            "E-commerce, EdTech, Marketing, Sales, HR, Operations, Security, etc.",
            "category name",
        ),
        "valueProposition": _text_prompt(
            'Based on the domain "{domain}", description "{description}", and category "{category}", '
            "create a compelling value proposition in 40-50 characters. "
            "Focus on the main benefit customers get.",
            "value proposition text",
        ),
        "segmentLookalikeURL": _text_prompt(
            'Based on the domain "{domain}" and segment type, suggest a single URL or resource where '
            "lookalike companies can be found for this segment.",
            "URL text",
        ),
        "valuePropositionVariations": _list_prompt(
            'Based on the domain "{domain}" and main value proposition "{valueProposition}", suggest exactly '
            "4 alternative value propositions for different market segments or use cases.",
            '["Alternative 1", "Alternative 2", "Alternative 3", "Alternative 4"]',
        ),
        "problemsWithRootCauses": _list_prompt(
            'Based on the domain "{domain}", description "{description}", and value proposition '
            '"{valueProposition}", identify exactly 4 specific problems this company solves, including '
            "the root causes of each problem.",
            '["Problem 1 - Root cause details", "Problem 2 - Root cause details", '
            '"Problem 3 - Root cause details", "Problem 4 - Root cause details"]',
        ),
        "keyFeatures": _list_prompt(
            'Based on the domain "{domain}", problems solved "{problemsWithRootCauses}", suggest exactly '
            "4 key product features that would solve these problems.",
            '["Feature 1", "Feature 2", "Feature 3", "Feature 4"]',
        ),
        "businessOutcomes": _list_prompt(
            'Based on the domain "{domain}", key features "{keyFeatures}", suggest exactly 4 specific '
            "business outcomes with metrics that customers achieve.",
            '["25% increase in efficiency", "50% reduction in processing time", "30% cost savings", '
            '"2x faster deployment"]',
        ),
        "useCases": _list_prompt(
            'Based on the domain "{domain}", features "{keyFeatures}", and outcomes "{businessOutcomes}", '
            "suggest exactly 4 specific use cases or scenarios where customers would use this product.",
            '["Use case 1", "Use case 2", "Use case 3", "Use case 4"]',
        ),
        "uniqueSellingPoints": _list_prompt(
            'Based on the domain "{domain}", features "{keyFeatures}", and use cases "{useCases}", suggest '
            "exactly 4 unique selling points that differentiate this company from competitors.",
            '["USP 1", "USP 2", "USP 3", "USP 4"]',
        ),
        "urgencyConsequences": _list_prompt(
            'Based on the domain "{domain}", problems "{problemsWithRootCauses}", suggest exactly 4 '
            "consequences of NOT solving these problems or delaying implementation.",
            '["Consequence 1", "Consequence 2", "Consequence 3", "Consequence 4"]',
        ),
        "pricingTiers": _list_prompt(
            'Based on the domain "{domain}", product description "{description}", and value proposition '
            '"{valueProposition}", suggest exactly 4 pricing tiers/packages that would make sense for this '
            "business. Include tier name, price point, and key features.",
            '["Starter - $99/month - Up to 10 users, basic features", '
            '"Professional - $299/month - Up to 50 users, advanced analytics", '
            '"Enterprise - $999/month - Unlimited users, custom integrations", '
            '"Custom - Contact sales - White-label solution, dedicated support"]',
        ),
        "clientTimeline": _list_prompt(
            'Based on the domain "{domain}" and product "{description}", suggest exactly 4 realistic '
            "timeline expectations and ROI metrics that clients typically experience.",
            '["Setup completed within 2 weeks with dedicated onboarding", '
            '"First results visible within 30 days of implementation", '
            '"20-30% efficiency improvement achieved by month 3", '
            '"Full ROI typically realized within 6-12 months"]',
        ),
        "roiRequirements": _list_prompt(
            'Based on the domain "{domain}" and product "{description}", suggest exactly 4 key requirements '
            "or commitments clients need to make to achieve successful ROI.",
            '["Dedicate 2-4 hours per week during first month for setup and training", '
            '"Assign a dedicated point person for implementation and ongoing management", '
            '"Provide access to existing systems and data for integration", '
            '"Commit to using the platform consistently for minimum 3 months"]',
        ),
        "segmentName": _list_prompt(
            'Based on the domain "{domain}", product description "{description}", and industry context, '
            "suggest exactly 4 potential target account segments that would be good fits for this solution.",
            '["Enterprise Manufacturing Companies (500+ employees)", "Mid-Market Healthcare Organizations", '
            '"Growing SaaS Companies (Series B+)", "Regional Financial Services Firms"]',
        ),
        "segmentIndustry": _list_prompt(
            'Based on the domain "{domain}" and product "{description}", suggest exactly 4 specific '
            "industries that would benefit most from this solution.",
            '["Manufacturing & Industrial", "Healthcare & Life Sciences", "Financial Services", '
            '"Technology & Software"]',
        ),
        "segmentCompanySize": _list_prompt(
            'Based on the domain "{domain}" and product type "{category}", suggest exactly 4 company size '
            "ranges that would be ideal targets for this solution.",
            '["50-200 employees, $10M-$50M revenue", "200-1000 employees, $50M-$200M revenue", '
            '"1000+ employees, $200M+ revenue", "Enterprise (5000+ employees, $1B+ revenue)"]',
        ),
        "segmentGeography": _list_prompt(
            'Based on the domain "{domain}" and business type, suggest exactly 4 geographic markets that '
            "would be good targets for this solution.",
            '["North America (US & Canada)", "Western Europe (UK, Germany, France)", '
            '"Asia-Pacific (Australia, Singapore, Japan)", "Global (All English-speaking markets)"]',
        ),
        "segmentEmployees": _list_prompt(
            'Based on the domain "{domain}" and industry context, suggest exactly 4 employee count ranges '
            "that would be appropriate targets for this solution.",
            '["50-100", "100-500", "500-1000", "1000+"]',
        ),
        "segmentLocations": _list_prompt(
            'Based on the domain "{domain}" and target market, suggest exactly 4 key locations or regions '
            "where this solution would be most valuable.",
            '["New York, NY", "San Francisco, CA", "London, UK", "Toronto, CA"]',
        ),
        "segmentSignals": _list_prompt(
            'Based on the domain "{domain}" and product type, suggest exactly 4 qualifying signals or '
            "indicators that would identify good prospects for outreach.",
            '["Recent funding announcement", "Job postings for relevant roles", '
            '"Technology stack changes", "Expansion into new markets"]',
        ),
        "segmentBenefits": _list_prompt(
            'Based on the domain "{domain}" and industry "{segmentIndustry}", suggest exactly 4 specific '
            "benefits or value propositions for this particular segment.",
            '["30% faster implementation for manufacturing environments", '
            '"Industry-specific compliance and security features", '
            '"Integration with existing ERP systems", "24/7 support with industry expertise"]',
        ),
        "segmentCTA": _list_prompt(
            'Based on the domain "{domain}" and target segment, suggest exactly 4 call-to-action options '
            "ranked by priority that would appeal to this segment.",
            '["Book a personalized demo", "Start free 30-day trial", "Download industry report", '
            '"Schedule consultation call"]',
        ),
        "segmentTier1Criteria": _list_prompt(
            'Based on the domain "{domain}" and segment context, suggest exactly 4 Tier 1 qualification '
            "criteria that would identify the highest-value prospects.",
            '["Annual budget above $100K for this category", "Decision maker identified and accessible", '
            '"Active evaluation process within 6 months", "Current pain point with existing solution"]',
        ),
        "segmentDisqualifying": _list_prompt(
            'Based on the domain "{domain}" and target segment, suggest exactly 4 disqualifying criteria '
            "that would indicate a poor fit prospect.",
            '["Budget below $50K annually", "No dedicated IT team", '
            '"Recent implementation of competing solution", '
            '"Not actively looking for solutions in this category"]',
        ),
        "personaTitle": _list_prompt(
            'Based on the segment industry "{segmentIndustry}" and company size "{segmentCompanySize}", '
            'suggest exactly 4 job titles that would be key decision makers or influencers for "{description}".',
            '["VP of Engineering", "IT Director", "Chief Technology Officer", "Head of Operations"]',
            description="this solution",
        ),
        "personaSeniority": _list_prompt(
            "Based on the job title context and industry, suggest exactly 4 seniority levels that would be "
            "appropriate for decision makers in this context.",
            '["Senior Manager", "Director", "Vice President", "C-Level Executive"]',
        ),
        "personaDepartment": _list_prompt(
            'Based on the persona title "{personaTitle}" and segment industry "{segmentIndustry}", suggest '
            "exactly 4 department names this persona might belong to.",
            '["Engineering", "Product", "IT", "Operations"]',
        ),
        "personaResponsibilities": _list_prompt(
            'Based on the persona title "{personaTitle}" in "{segmentIndustry}" industry, suggest exactly '
            "4 primary responsibilities this person would have in their role.",
            '["Oversee technology infrastructure and security", '
            '"Manage team of 10-15 engineers and developers", '
            '"Drive digital transformation initiatives", "Evaluate and implement new software solutions"]',
        ),
        "personaChallenges": _list_prompt(
            'Based on the persona title "{personaTitle}" in "{segmentIndustry}" industry, suggest exactly '
            '4 key challenges or pain points this person typically faces that "{description}" could help solve.',
            '["Limited budget for new technology implementations", '
            '"Pressure to reduce operational costs while maintaining quality", '
            '"Difficulty finding and retaining skilled technical talent", '
            '"Need to integrate multiple legacy systems efficiently"]',
            description="our solution",
        ),
        "personaOKRs": _list_prompt(
            'Based on the persona title "{personaTitle}" in "{segmentIndustry}" industry, suggest exactly '
            "4 typical OKRs (Objectives & Key Results) this person would be responsible for.",
            '["Increase system uptime to 99.9%", "Reduce security incidents by 50%", '
            '"Implement new technology stack within 6 months", "Achieve team satisfaction score of 4.5/5"]',
        ),
        "personaValueProp": _list_prompt(
            'Based on the persona title "{personaTitle}", segment industry "{segmentIndustry}", and product '
            'value proposition "{valueProposition}", suggest exactly 4 value propositions tailored for this persona.',
            '["Increase team efficiency", "Reduce operational costs", "Improve product quality", '
            '"Accelerate innovation"]',
        ),
        "personaCTA": _list_prompt(
            'Based on the persona title "{personaTitle}", segment industry "{segmentIndustry}", and product '
            "context, suggest exactly 4 specific calls to action that would appeal to this persona.",
            '["Request a demo", "Download whitepaper", "Join webinar", "Start free trial"]',
        ),
    }
)


# ---------------------------------------------------------------------------
# Entity enrichment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EntityPrompt:
    """Template plus the fixed JSON shape the model must return."""

    template: str
    schema: Mapping[str, Any]

    def render(self, values: Mapping[str, Any]) -> str:
        body = render_prompt(self.template, values)
        return (
            f"{body}\n\nReturn ONLY valid JSON with these exact fields:\n"
            f"{json.dumps(_thaw(self.schema), indent=2)}"
        )


def _thaw(schema: Any) -> Any:
    if isinstance(schema, Mapping):
        return {key: _thaw(value) for key, value in schema.items()}
    if isinstance(schema, tuple):
        return []
    return schema


_ENTITY_HEADER = (
    'You are a senior GTM strategist. Based on the {entityLabel} "{seedName}" and the company '
    "context below, generate {goal}.\n\n"
    "Company: {companyName}\n"
    "Products: {products}\n"
    "Industry: {industry}\n\n"
)

PERSONA_SCHEMA: Mapping[str, Any] = MappingProxyType(
    {
        "painPoints": (),
        "goals": (),
        "responsibilities": (),
        "challenges": (),
        "channels": (),
        "triggers": (),
        "objections": (),
        "demographics": MappingProxyType(
            {"experience": "", "education": "", "industry": "", "teamSize": "", "budget": ""}
        ),
    }
)

SEGMENT_SCHEMA: Mapping[str, Any] = MappingProxyType(
    {
        "characteristics": (),
        "painPoints": (),
        "marketSize": "",
        "growthRate": "",
        "buyingBehavior": MappingProxyType(
            {"decisionTimeframe": "", "budgetRange": "", "decisionMakers": (), "evaluationCriteria": ()}
        ),
        "qualification": MappingProxyType(
            {"idealCriteria": (), "disqualifyingCriteria": (), "lookalikeCompanies": ()}
        ),
    }
)

PRODUCT_SCHEMA: Mapping[str, Any] = MappingProxyType(
    {
        "features": (),
        "problems": (),
        "usps": (),
        "useCases": (),
        "benefits": (),
        "competitiveAdvantages": (),
        "implementation": MappingProxyType(
            {"timeToValue": "", "complexity": "", "requirements": (), "successFactors": ()}
        ),
    }
)

ENTITY_PROMPTS: Mapping[str, EntityPrompt] = MappingProxyType(
    {
        "persona": EntityPrompt(
            template=_ENTITY_HEADER.replace("{entityLabel}", "persona").replace(
                "{goal}", "detailed persona information"
            )
            + "Generate comprehensive persona details including:\n"
            "- Pain points (up to 4 specific challenges)\n"
            "- Goals and objectives (up to 4 items)\n"
            "- Daily responsibilities (up to 4 items)\n"
            "- Key challenges they face (up to 4 items)\n"
            "- Preferred communication channels (up to 4)\n"
            "- Decision-making triggers (up to 4)\n"
            "- Objections they might have (up to 4)\n"
            "- Demographics and profile information",
            schema=PERSONA_SCHEMA,
        ),
        "segment": EntityPrompt(
            template=_ENTITY_HEADER.replace("{entityLabel}", "segment").replace(
                "{goal}", "detailed segment analysis"
            )
            + "Generate comprehensive segment details including:\n"
            "- Key characteristics and firmographics (up to 4)\n"
            "- Specific pain points this segment faces (up to 4)\n"
            "- Market size and growth potential\n"
            "- Buying behavior patterns (up to 4 for each array)\n"
            "- Qualification criteria (up to 4 for each array)",
            schema=SEGMENT_SCHEMA,
        ),
        "product": EntityPrompt(
            template=_ENTITY_HEADER.replace("{entityLabel}", "product").replace(
                "{goal}", "detailed product information"
            )
            + "Generate comprehensive product details including:\n"
            "- Key features and capabilities (up to 4)\n"
            "- Problems it solves (up to 4)\n"
            "- Unique selling propositions (up to 4)\n"
            "- Target use cases (up to 4)\n"
            "- Benefits and value props (up to 4)\n"
            "- Competitive advantages (up to 4)\n"
            "- Implementation considerations (up to 4 for each array)",
            schema=PRODUCT_SCHEMA,
        ),
    }
)


# ---------------------------------------------------------------------------
# ICP enrichment version set
# ---------------------------------------------------------------------------

ICP_STYLE_VARIANTS: tuple[str, ...] = (
    "Focus on strategic depth and market positioning for large enterprise buyers.",
    "Emphasize tactical implementation, speed-to-value, and practical recommendations.",
    "Focus on innovation potential, ecosystem growth, and future-ready GTM strategy.",
    "Prioritize buyer psychology, emotional triggers, and customer-centric storytelling.",
)

ICP_ENRICHMENT_TEMPLATE = (
    "You are a senior GTM strategist. Based on the company below, generate expanded Ideal Customer "
    "Profile (ICP) information to populate a GTM dashboard.\n\n"
    "---\n\n"
    "**Company**: {companyName}\n"
    "**Website**: {companyUrl}\n"
    "**What it does**: {products}\n"
    "**Competitors**: {competitors}\n"
    "**Customer Types**: {segments}\n\n"
    "---\n\n"
    "Your goal is to help a go-to-market team deeply understand their ideal customers by producing a "
    "structured GTM summary with the following components. Focus on clarity, accuracy, and real-world "
    "GTM usage. This will power dashboards and automation.\n\n"
    "Return exactly these fields in **valid JSON** format:\n\n"
    "1. oneLiner\n"
    "2. companySummary\n"
    "3. products {{ problems[], features[], solution, usp[], whyNow[] }}\n"
    "4. competitorDomains[]\n"
    "5. salesDeckIdeas[]\n"
    "6. caseStudies[]\n"
    "7. ctaOptions[]\n"
    "8. segments[]\n"
    "9. personasTable[]\n\n"
    "Respond in **valid JSON only**. No Markdown or explanation.\n\n"
    "{styleVariant}"
)
