"""Landing page experiments, one per page section."""

from abtest_engine.models.schemas.experiment import ABTest, ABVariant

# ===== HERO SECTION =====
HERO_AB_TEST = ABTest(
    test_id="hero-messaging-test",
    name="Hero Section Messaging Test",
    description="Testing different hero messaging approaches for conversion optimization",
    enabled=True,
    default_variant="original",
    variants=[
        ABVariant(
            id="original",
            name="Original - Guardian Focus",
            weight=50,
            config={
                "title": "Warden: The Shield in the Deep",
                "subtitle": "Mining is still dangerous. We're building guardians who never blink.",
                "quote": "Mining can't be rewritten overnight, but we can begin with intelligence, respect, and armor.",
                "cta": {"text": "Join the Mission", "link": "#join"},
            },
        ),
        ABVariant(
            id="protective-focus",
            name="Alternative - Protection Focus",
            weight=50,
            config={
                "title": "Warden: The Shield in the Deep",
                "subtitle": "Protecting those who still dare to dig. A new era of mining has begun.",
                "quote": "Mining can't be rewritten overnight, but we can begin with intelligence, empathy, and armor.",
                "cta": {"text": "Join the Mission", "link": "#join"},
            },
        ),
    ],
)

# ===== MISSION SECTION =====
MISSION_AB_TEST = ABTest(
    test_id="mission-approach-test",
    name="Mission Section Approach Test",
    description="Testing different mission messaging approaches",
    enabled=True,
    default_variant="current",
    variants=[
        ABVariant(
            id="current",
            name="Current - Statistics Focus",
            weight=60,
            config={
                "problem": {
                    "tagline": "The Reality Underground",
                    "heading": "Mining remains one of the most dangerous occupations worldwide",
                    "stats": [
                        {
                            "number": "28",
                            "label": "US mining fatalities in 2024 (MSHA)",
                            "color": "red",
                            "source": "MSHA Daily Fatality Report",
                        },
                        {
                            "number": "2.29",
                            "label": "global TRIFR per 1M hours (ICMM 2024)",
                            "color": "orange",
                            "source": "ICMM Safety Data",
                        },
                    ],
                    "description": [
                        "Gas leaks. Collapses. Heat. Silence.",
                        "Behind every verified statistic is a family waiting at the kitchen table. "
                        "Even with progress, mining workers face risks that demand our attention and protection.",
                    ],
                    "quote": "We're not trying to replace the miner. We're becoming their shield in the deep.",
                    "solution": "Warden is the first AI system built to shield, warn, and remember before danger strikes.",
                    "context": "Based on official 2024 data from MSHA (US) and ICMM (global mining companies).",
                }
            },
        ),
        ABVariant(
            id="aspirational",
            name="Alternative - Aspirational Focus",
            weight=40,
            config={
                "problem": {
                    "tagline": "The Reality Underground",
                    "heading": "What if we could mine without loss?",
                    "stats": [
                        {"number": "15,000+", "label": "mining deaths yearly", "color": "red"},
                        {"number": "60%", "label": "preventable incidents", "color": "orange"},
                    ],
                    "description": [
                        "We believe no one should die just to earn a living.",
                        "Earthform is building AI-powered drones that understand danger, "
                        "protect lives, and keep the earth intact.",
                    ],
                    "quote": "We respect the minerals, and the people, who make modern life possible.",
                    "solution": "Warden is creating a future where mining and human dignity coexist.",
                    "context": "Based on global mining safety analysis and industry incident reports.",
                }
            },
        ),
    ],
)

# ===== CTA SECTION =====
CTA_AB_TEST = ABTest(
    test_id="cta-messaging-test",
    name="Call-to-Action Messaging Test",
    description="Testing different CTA button text and messaging for conversion",
    enabled=True,
    default_variant="mission-focus",
    variants=[
        ABVariant(
            id="mission-focus",
            name="Mission Focus",
            weight=33,
            config={
                "heading": "Join the Mission",
                "subtitle": "Help us build AI systems that protect lives and honor the Earth.",
                "form": {"submitText": "Back the Mission"},
            },
        ),
        ABVariant(
            id="tech-focus",
            name="Technology Focus",
            weight=33,
            config={
                "heading": "See Our Technology",
                "subtitle": "Discover how AI-powered guardians are revolutionizing mining safety.",
                "form": {"submitText": "Learn More"},
            },
        ),
        ABVariant(
            id="community-focus",
            name="Community Focus",
            weight=34,
            config={
                "heading": "Join Our Community",
                "subtitle": "Be part of the movement to make mining safer for everyone.",
                "form": {"submitText": "Get Involved"},
            },
        ),
    ],
)

DEFAULT_TESTS = {
    "hero": HERO_AB_TEST,
    "mission": MISSION_AB_TEST,
    "cta": CTA_AB_TEST,
}
