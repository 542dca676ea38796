CANONICAL_DOCTYPE = "<!DOCTYPE html>"

DEFAULT_EXPLANATION = "Website generated successfully."

IMPROVEMENT_PROMPT_TEMPLATE = 'Improve the following code based on this request: "{instruction}"'


def wrap_improvement(instruction: str) -> str:
    """Phrase a follow-up instruction as a revision request for the previous document."""
    return IMPROVEMENT_PROMPT_TEMPLATE.format(instruction=instruction.strip())


# Predefined prompts for quick generation
QUICK_PROMPTS = [
    "Create an SEO-optimized tech startup landing page with CSS hero graphics and glassmorphism",
    "Build a personal portfolio with CSS-drawn illustrations and SEO meta tags",
    "Design a modern blog layout with CSS graphics and optimized headings",
    "Create a product showcase with CSS-based visuals and structured data",
    "Build a restaurant website with CSS food illustrations and local SEO optimization",
    "Design a travel blog with CSS destination graphics and travel schema",
    "Create a fitness landing page with CSS workout icons and health-focused SEO",
    "Build a creative agency portfolio with CSS graphics and case studies",
    "Design an e-commerce product page with CSS product visuals and rich snippets",
    "Create a real estate website with CSS property graphics and location schema",
    "Build a photography portfolio with CSS gallery layouts and artist bio SEO",
    "Design a medical practice website with CSS health icons and health schema",
    "Create a construction company site with CSS project graphics and service SEO",
    "Build a fashion blog with CSS style graphics and fashion-focused keywords",
    "Design a technology review site with CSS tech icons and review schema",
]
