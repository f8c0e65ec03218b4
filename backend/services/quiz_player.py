"""Client-side quiz session.

Mirrors what the learner dashboard does while a quiz is running: it fetches
the question set, shuffles each question's options, walks through the
questions one at a time, keeps a countdown and auto-submits when the time is
up. Transport is injected, so the same player drives the HTTP API or a test
client.
"""
import enum
import math
import random
import time

DEFAULT_DURATION_MINUTES = 30


class QuizState(enum.Enum):
    start = "start"
    playing = "playing"
    submitting = "submitting"
    result = "result"


class QuizTransportError(Exception):
    """Raised by a transport callable when the server rejects a request."""


def fisher_yates_shuffle(items, rng=None):
    """Return a shuffled copy of ``items``; the input list is left untouched."""
    rng = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def format_time(seconds):
    seconds = max(int(seconds), 0)
    return f"{seconds // 60}:{seconds % 60:02d}"


class QuizPlayer:
    def __init__(self, quiz_id, start_quiz, submit_quiz, clock=time.monotonic, rng=None):
        self.quiz_id = quiz_id
        self._start_quiz = start_quiz
        self._submit_quiz = submit_quiz
        self._clock = clock
        self._rng = rng

        self.state = QuizState.start
        self.questions = []
        self.current_index = 0
        self.answers = {}
        self.flagged = set()
        self.result = None
        self.error = ""
        self.duration_seconds = 0
        self._deadline = None
        self._auto_submitted = False

    # Lifecycle
    def start(self):
        if self.state is not QuizState.start:
            raise RuntimeError("Quiz already started")

        self.error = ""
        try:
            data = self._start_quiz(self.quiz_id)
        except QuizTransportError as e:
            self.error = str(e) or "Failed to start quiz"
            return False

        # Older servers answered with a bare list of questions
        if isinstance(data, list):
            questions, duration = data, DEFAULT_DURATION_MINUTES
        else:
            questions = data.get("questions", [])
            duration = data.get("duration") or DEFAULT_DURATION_MINUTES

        self.questions = [
            dict(q, shuffled_options=fisher_yates_shuffle(q.get("options") or [], self._rng))
            for q in questions
        ]
        self.duration_seconds = int(duration) * 60
        self._deadline = self._clock() + self.duration_seconds
        self.current_index = 0
        self.state = QuizState.playing
        return True

    def submit(self):
        if self.state is not QuizState.playing:
            return self.result

        self.state = QuizState.submitting
        payload = {
            "answers": {str(qid): option for qid, option in self.answers.items()},
            "question_ids": [q["id"] for q in self.questions],
        }
        try:
            self.result = self._submit_quiz(self.quiz_id, payload)
        except QuizTransportError as e:
            self.error = str(e) or "Failed to submit quiz"
            self.state = QuizState.playing
            return None

        self.state = QuizState.result
        return self.result

    # Timer
    @property
    def time_left(self):
        if self._deadline is None:
            return 0
        return max(math.ceil(self._deadline - self._clock()), 0)

    def tick(self):
        """Poll the countdown; submits automatically once it reaches zero."""
        if self.state is QuizState.playing and self.time_left <= 0 and not self._auto_submitted:
            self._auto_submitted = True
            return self.submit()
        return None

    @property
    def is_running_out(self):
        return self.state is QuizState.playing and self.time_left < 60

    # Navigation
    @property
    def current(self):
        if not self.questions:
            return None
        return self.questions[self.current_index]

    def next(self):
        if self.current_index < len(self.questions) - 1:
            self.current_index += 1
        return self.current

    def prev(self):
        if self.current_index > 0:
            self.current_index -= 1
        return self.current

    def go_to(self, index):
        if not 0 <= index < len(self.questions):
            raise IndexError(f"No question at position {index}")
        self.current_index = index
        return self.current

    # Answers and review flags
    def answer(self, option):
        if self.state is not QuizState.playing:
            raise RuntimeError("Quiz is not being played")
        question = self.current
        if option not in question["shuffled_options"]:
            raise ValueError(f"{option!r} is not an option for this question")
        self.answers[question["id"]] = option

    def toggle_flag(self, index=None):
        index = self.current_index if index is None else index
        if index in self.flagged:
            self.flagged.remove(index)
        else:
            self.flagged.add(index)
        return index in self.flagged

    def unanswered(self):
        return [i for i, q in enumerate(self.questions) if q["id"] not in self.answers]

    @property
    def progress(self):
        if not self.questions:
            return 0
        return round(len(self.answers) / len(self.questions) * 100)
