"""
Listening test scripts read aloud by the text-to-speech proxy.
"""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ListeningScript:
    question_id: int
    transcript: str


LISTENING_SCRIPTS: dict[int, ListeningScript] = {
    script.question_id: script
    for script in (
        ListeningScript(
            1,
            "Hi! My name is Sarah. I work as a teacher at a local school. I really enjoy my job "
            "because I love helping students learn new things every day.",
        ),
        ListeningScript(
            2,
            "Good morning! I usually wake up at seven o'clock. First, I have breakfast with my "
            "family. Then I take a short walk before going to work. It's a nice routine.",
        ),
        ListeningScript(
            3,
            "I think learning English is very important today. It helps you communicate with "
            "people from different countries. You can also read books and watch movies in English.",
        ),
        ListeningScript(
            4,
            "Last weekend, I visited my grandmother. She lives in a small village near the "
            "mountains. We had lunch together and talked about old family stories. It was a "
            "wonderful visit.",
        ),
    )
}


def get_script(question_id: int | None) -> ListeningScript | None:
    if question_id is None:
        return None
    return LISTENING_SCRIPTS.get(question_id)
