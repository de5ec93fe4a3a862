"""Built-in word lists for brand extraction and classification.

These are defaults only. ``brandpulse.analysis.lexicon.load_lexicon`` can
replace any of them from a JSON file (``LEXICON_PATH``) without code changes:

    {"generic_terms": [...], "known_brands": [...], "extend": true}

All entries are compared after name normalization (lowercase, no punctuation).
"""

# Capitalized words that open sentences or headings in LLM answers.
# Dropped by the pattern extractor before classification.
COMMON_CAPITALIZED_WORDS: list[str] = [
    "The", "This", "That", "These", "Those", "Here", "There", "When", "Where", "What",
    "Why", "Who", "Which", "How", "Some", "Many", "Most", "All", "Any", "Each", "Every",
    "Best", "Good", "Better", "Great", "First", "Last", "Next", "New", "Old", "Other",
    "Another", "And", "But", "For", "With", "You", "Your", "They", "Their", "Its",
    "Also", "However", "Additionally", "Overall", "Finally", "Both", "Key", "Top",
    "Pros", "Cons", "Note", "Yes", "Not", "Our", "One", "Two", "Three", "Use", "Using",
    "Consider", "Choose", "Look", "Start", "Ultimately", "Moreover", "Furthermore",
    "Summary", "Conclusion", "Example", "Features", "Pricing", "Options", "Tip",
]

# Generic nouns, stop words and verbs that appear capitalized but are never brands.
GENERIC_TERMS: list[str] = [
    # stop words
    "the", "and", "or", "but", "for", "with", "by", "from", "to", "in", "on", "at",
    "some", "many", "most", "all", "every", "each", "few", "several", "various",
    "when", "where", "what", "how", "why", "who", "which", "here", "there", "this", "that",
    "you", "your", "our", "their", "one", "two", "three", "four", "five", "six", "seven",
    "eight", "nine", "ten",
    # generic business nouns
    "business", "company", "corporation", "enterprise", "organization", "firm", "agency",
    "service", "solution", "product", "platform", "system", "tool", "tools", "software",
    "application", "app", "website", "site", "portal", "dashboard", "search", "email",
    "mobile", "web", "online", "digital", "smart", "pro", "plus", "premium", "standard",
    "basic", "free", "paid", "custom", "advanced", "data", "database", "server", "cloud",
    "team", "user", "client", "clients", "customer", "experience", "strategy", "audience",
    "engagement", "conversion", "performance", "optimization",
    # terms that leak from answers
    "platforms", "specific", "consider", "businesses", "needs", "options", "features",
    "capabilities", "functionality", "integration", "integrations", "automation",
    "analytics", "insights", "reporting", "management", "marketing", "sales", "crm",
    "content", "social", "media", "campaigns", "leads", "customers", "users",
    # verbs
    "create", "build", "make", "develop", "design", "manage", "handle", "process",
    "analyze", "review", "update", "improve", "optimize", "enhance", "track", "monitor",
    "choose", "focus", "start", "implement", "use", "get",
]

# Phrases that mark a candidate as link text or boilerplate.
NOISE_PHRASES: list[str] = ["click here", "learn more", "read more", "sign up"]

# Well-known brands accepted as competitors without a structural signal.
KNOWN_BRANDS: list[str] = [
    "salesforce", "hubspot", "mailchimp", "zapier", "slack", "zoom", "dropbox",
    "notion", "asana", "trello", "monday", "clickup", "airtable", "basecamp",
    "shopify", "woocommerce", "magento", "bigcommerce", "squarespace", "wix",
    "stripe", "paypal", "square", "quickbooks", "xero", "freshbooks",
    "adobe", "figma", "canva", "sketch", "invision", "github", "gitlab",
    "atlassian", "jira", "confluence", "bitbucket", "microsoft", "google",
    "oracle", "ibm", "aws", "azure", "digitalocean", "heroku", "netlify",
    "marketo", "pardot", "klaviyo", "constant contact", "activecampaign",
    "pipedrive", "zoho", "dynamics", "netsuite", "workday", "servicenow",
    "zendesk", "freshdesk", "freshsales", "intercom",
]

# Regexes tested against the trimmed, original-case candidate.
STRUCTURAL_PATTERNS: dict[str, str] = {
    "domain": r"\.(com|io|org|net|co|ai)$",
    "camel_case": r"^[A-Z][a-z]+(?:[A-Z][a-z0-9]*)+$",
    "software_suffix": r"(?i)(Hub|Force|Spot|Works?|Pro|Analytics|CRM)$",
}

# Corporate suffixes stripped when deriving brand variants.
CORPORATE_SUFFIXES: list[str] = ["inc", "llc", "corp", "ltd", "limited", "company", "gmbh", "plc"]
