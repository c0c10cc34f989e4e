"""
Topic Classifier / Tag Extractor
================================
Keyword-bag matchers over the JEE syllabus hierarchy.

A label is emitted when at least one of its keywords occurs in the text
(case-insensitive substring). Confidence is matched / total keywords for
that label. It ranks labels and is not a probability.

Subtopics are matched in a second stage, only among the candidates
nominated by topics that already matched.
"""

from __future__ import annotations

from .models import SubtopicMatch, TopicMatch

TOPIC_TABLE: dict[str, dict[str, list[str]]] = {
    # Mathematics
    "Algebra": {
        "keywords": ["algebra", "polynomial", "quadratic", "linear equation",
                     "matrix", "determinant"],
        "subtopics": ["Quadratic Equations", "Matrices", "Complex Numbers",
                      "Sequences and Series"],
    },
    "Calculus": {
        "keywords": ["calculus", "derivative", "integral", "limit",
                     "differentiation", "integration"],
        "subtopics": ["Differentiation", "Integration", "Limits",
                      "Applications of Derivatives"],
    },
    "Geometry": {
        "keywords": ["geometry", "triangle", "circle", "rectangle", "area",
                     "perimeter", "coordinate"],
        "subtopics": ["Coordinate Geometry", "Conic Sections", "3D Geometry",
                      "Lines and Planes"],
    },
    "Trigonometry": {
        "keywords": ["trigonometry", "sin", "cos", "tan", "trigonometric",
                     "angle"],
        "subtopics": ["Trigonometric Functions", "Trigonometric Identities",
                      "Inverse Trigonometric Functions"],
    },
    # Physics
    "Mechanics": {
        "keywords": ["mechanics", "motion", "force", "acceleration",
                     "velocity", "momentum"],
        "subtopics": ["Kinematics", "Dynamics", "Work & Energy",
                      "Rotational Motion"],
    },
    "Electricity & Magnetism": {
        "keywords": ["electricity", "magnetism", "electric", "magnetic",
                     "current", "voltage"],
        "subtopics": ["Electrostatics", "Current Electricity",
                      "Magnetic Effects", "Electromagnetic Induction"],
    },
    "Waves & Optics": {
        "keywords": ["waves", "optics", "light", "sound", "reflection",
                     "refraction"],
        "subtopics": ["Wave Motion", "Sound Waves", "Light Waves",
                      "Optical Instruments"],
    },
    "Thermodynamics": {
        "keywords": ["thermodynamics", "heat", "temperature", "entropy",
                     "gas laws"],
        "subtopics": ["Heat Transfer", "Thermodynamic Laws", "Kinetic Theory",
                      "Thermal Properties"],
    },
    # Chemistry
    "Physical Chemistry": {
        "keywords": ["physical chemistry", "thermodynamics", "kinetics",
                     "equilibrium", "mole"],
        "subtopics": ["Thermodynamics", "Chemical Kinetics",
                      "Chemical Equilibrium", "Atomic Structure"],
    },
    "Organic Chemistry": {
        "keywords": ["organic", "carbon", "hydrocarbon", "reaction",
                     "synthesis"],
        "subtopics": ["Hydrocarbons", "Functional Groups",
                      "Reaction Mechanisms", "Biomolecules"],
    },
    "Inorganic Chemistry": {
        "keywords": ["inorganic", "periodic table", "coordination", "metals",
                     "non-metals"],
        "subtopics": ["Periodic Properties", "Chemical Bonding",
                      "Coordination Compounds", "s-Block Elements"],
    },
}

SUBTOPIC_KEYWORDS: dict[str, list[str]] = {
    "Kinematics": ["velocity", "acceleration", "displacement", "motion",
                   "kinematics"],
    "Dynamics": ["force", "newton", "friction", "dynamics", "momentum"],
    "Electrostatics": ["charge", "electric field", "coulomb", "electrostatic",
                       "potential"],
    "Current Electricity": ["current", "resistance", "circuit", "ohm", "power"],
    "Quadratic Equations": ["quadratic", "discriminant", "roots", "equation"],
    "Integration": ["integral", "integration", "antiderivative",
                    "definite integral"],
    "Differentiation": ["derivative", "differentiation", "rate of change",
                        "slope"],
    "Coordinate Geometry": ["coordinates", "distance", "midpoint", "slope",
                            "equation of line"],
    "Chemical Bonding": ["bond", "ionic", "covalent", "electronegativity",
                         "hybridization"],
    "Organic Reactions": ["reaction", "mechanism", "substitution",
                          "elimination", "addition"],
}

TAG_KEYWORDS: dict[str, list[str]] = {
    "Previous Year": ["previous year", "pyq"],
    "JEE Mains": ["jee mains", "mains"],
    "JEE Advanced": ["jee advanced", "advanced"],
    "Multiple Choice": ["multiple choice", "mcq"],
    "Numerical": ["numerical", "numerical value"],
    "Conceptual": ["concept", "conceptual"],
    "Formula Based": ["formula", "formulae"],
}


def match_keywords(text: str, keywords: list[str]) -> list[str]:
    """Keywords present in ``text`` as case-insensitive substrings."""
    lowered = text.lower()
    return [k for k in keywords if k.lower() in lowered]


def subtopic_keywords(name: str) -> list[str]:
    return SUBTOPIC_KEYWORDS.get(name, [name.lower()])


def classify_topics(text: str) -> list[TopicMatch]:
    topics = []
    for name, entry in TOPIC_TABLE.items():
        matched = match_keywords(text, entry["keywords"])
        if matched:
            topics.append(TopicMatch(
                name=name,
                confidence=len(matched) / len(entry["keywords"]),
                matched_keywords=matched,
                candidate_subtopics=list(entry["subtopics"]),
            ))
    return topics


def classify_subtopics(text: str, topics: list[TopicMatch]) -> list[SubtopicMatch]:
    subtopics = []
    for topic in topics:
        for name in topic.candidate_subtopics:
            keywords = subtopic_keywords(name)
            matched = match_keywords(text, keywords)
            if matched:
                subtopics.append(SubtopicMatch(
                    name=name,
                    parent_topic=topic.name,
                    confidence=len(matched) / len(keywords),
                    matched_keywords=matched,
                ))
    return subtopics


def extract_tags(text: str) -> list[str]:
    return [
        tag for tag, keywords in TAG_KEYWORDS.items()
        if match_keywords(text, keywords)
    ]
