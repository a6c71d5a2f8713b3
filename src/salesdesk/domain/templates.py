"""Canned quick replies offered in the conversation panel."""

MESSAGE_TEMPLATES: dict[str, list[str]] = {
    "Greeting": [
        "Hello! How can I help you today?",
        "Hi there! Thanks for reaching out. How may I assist you?",
        "Welcome! I'm here to help with any questions about our products.",
    ],
    "Product Inquiry": [
        "Sure! Let me check the availability and pricing for you.",
        "We have several options in that category. What's your budget range?",
        "This laptop comes with a 6-month warranty. Would you like to see similar models?",
    ],
    "Pricing": [
        "The price includes GST and delivery. Would you like to proceed?",
        "We can offer a special discount if you're buying multiple items.",
        "EMI options are available. Shall I share the details?",
    ],
    "Closing": [
        "Thank you for your inquiry! Feel free to reach out anytime.",
        "Great! I'll process your order right away.",
        "Let me know if you need anything else. Have a great day!",
    ],
}


def find_templates(term: str = "") -> dict[str, list[str]]:
    """Templates containing *term* (case-insensitive), grouped by category.

    Categories with no match are left out.
    """
    needle = term.strip().lower()
    found: dict[str, list[str]] = {}
    for category, messages in MESSAGE_TEMPLATES.items():
        matching = [message for message in messages if needle in message.lower()]
        if matching:
            found[category] = matching
    return found
