"""
Chat Domain Models
Course catalog and the system prompt for the "Laila" course advisor.
"""

from dataclasses import dataclass

SUPPORTED_LANGUAGES = ("en", "hi")
CHAT_ROLES = ("user", "assistant")


@dataclass(slots=True, frozen=True)
class Course:
    name: str
    duration: str
    price: str
    focus: str
    audience: str
    cefr_levels: tuple[str, ...]

    def prompt_line(self) -> str:
        levels = f"{self.cefr_levels[0]}-{self.cefr_levels[-1]}"
        return (
            f"**{self.name}**: {self.audience} {self.duration}, {self.price}. "
            f"Focus: {self.focus}. Suitable for {levels} levels."
        )


COURSE_CATALOG: tuple[Course, ...] = (
    Course(
        name="Student English Program",
        duration="6 months",
        price="₹15,000",
        focus="Academic English, spoken English, grammar, exam preparation",
        audience="For school/college students wanting to improve spoken English and academic confidence.",
        cefr_levels=("A1", "A2", "B1"),
    ),
    Course(
        name="Professional English Program",
        duration="4 months",
        price="₹20,000",
        focus="Business communication, meetings, presentations",
        audience="For working professionals needing fluent English at the workplace.",
        cefr_levels=("B1", "B2", "C1"),
    ),
    Course(
        name="Competitive Exam Program",
        duration="3 months",
        price="₹18,000",
        focus="IELTS, TOEFL, PTE preparation with proven strategies",
        audience="Intensive preparation for competitive English exams and study abroad.",
        cefr_levels=("B1", "B2", "C1"),
    ),
    Course(
        name="Teacher Training Program",
        duration="2 months",
        price="₹25,000",
        focus="Teaching methodologies, classroom management",
        audience="Advanced program for educators.",
        cefr_levels=("B2", "C1"),
    ),
)

LANGUAGE_DIRECTIVES = {
    "hi": "You MUST respond ONLY in Hindi (Devanagari script). Never use English in your responses.",
    "en": "You MUST respond ONLY in English. Never use Hindi in your responses.",
}


def normalize_language(language: str | None) -> str:
    """Unknown or missing language codes fall back to English."""
    code = (language or "en").strip().lower()
    return code if code in SUPPORTED_LANGUAGES else "en"


def build_system_prompt(language: str | None = "en", user_name: str | None = None) -> str:
    """Compose the advisor persona, catalog, platform facts and language directive."""
    directive = LANGUAGE_DIRECTIVES[normalize_language(language)]
    name = (user_name or "").strip()
    greeting = f"The user's name is {name}. Address them by name warmly." if name else ""

    courses = "\n".join(
        f"{index}. {course.prompt_line()}" for index, course in enumerate(COURSE_CATALOG, start=1)
    )

    return f"""You are Laila, a friendly and knowledgeable course advisor for an English learning platform in Mumbai. You help students find the perfect English course based on their needs and goals.

{directive}
{greeting}

PERSONALITY:
- You are warm, encouraging, and supportive
- You speak in a conversational, friendly manner
- You ask thoughtful questions to understand the student's needs

AVAILABLE COURSES:
{courses}

ABOUT THE PLATFORM:
- Located in Mumbai, India, serving students worldwide
- Offers both online (Zoom/Google Meet) and in-person classes
- Free trial class available
- Demo test on the website to assess English level
- Flexible scheduling with small batch sizes

YOUR ROLE:
1. Greet users warmly and ask their name if not known
2. Understand their English learning goals
3. Ask about their current English level
4. Recommend the most suitable course
5. Encourage them to take the demo test or book a free trial class
6. Answer any questions about courses, pricing and schedules

Keep responses concise (2-3 sentences) unless more detail is needed.

{directive}"""
