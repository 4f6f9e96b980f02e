from __future__ import annotations
import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError

from ..errors import ContentGenerationError
from ..gemini_client import GeminiClient
from ..schemas import ImprovementItem
from ..scramble import ScrambleState


router = APIRouter(prefix="/content", tags=["content"])
logger = logging.getLogger(__name__)


READING_LEVELS = {
    "Beginner": ("2-3 sentences", 2),
    "Intermediate": ("4-6 sentences", 3),
    "Advanced": ("7-9 sentences", 4),
}

SCRAMBLE_DIFFICULTY = {
    "starter": "3-4 word sentences",
    "growing": "4-6 word sentences",
    "leaping": "6-8 word sentences with more complex structure",
}

CULTURAL_CONTEXT = (
    "The content must be culturally appropriate for a young student living in Saudi Arabia. "
    "Themes like desert landscapes, camels, dates, family gatherings, or cities like Riyadh and Jeddah are welcome. "
    "Keep the tone positive and relatable."
)


async def get_gemini_client():
    try:
        client = GeminiClient()
    except ContentGenerationError as err:
        raise HTTPException(status_code=503, detail=err.message)
    try:
        yield client
    finally:
        await client.aclose()


# ---- response shapes ----

class QuizQuestion(BaseModel):
    type: Literal["MULTIPLE_CHOICE"] = "MULTIPLE_CHOICE"
    question: str
    options: List[str]
    correctAnswer: str
    explanation: Optional[str] = None


class ReadingPassage(BaseModel):
    passage: str
    questions: List[QuizQuestion]


class ScrambledSentence(BaseModel):
    scrambled: List[str]
    correct: str


class VocabularyCard(BaseModel):
    word: str
    meaning: str
    form: str
    structure: str
    contextSentences: List[str]
    imagePrompt: str


class WordDefinition(BaseModel):
    word: str
    partOfSpeech: str
    definition: str


class RubricScore(BaseModel):
    score: int = Field(ge=1, le=5)
    justification: Optional[str] = None


class NarrativeScores(BaseModel):
    paragraphs: RubricScore
    grammar: RubricScore
    sentenceStructure: RubricScore
    spellingAndPunctuation: RubricScore
    total: int


class WritingFeedback(BaseModel):
    scores: NarrativeScores
    goodPoints: List[str]
    improvementArea: List[ImprovementItem]


class LetterPartFeedback(BaseModel):
    part: Literal["Heading", "Greeting", "Body", "Closing", "Signature"]
    status: Literal["Correct", "Needs Improvement", "Missing"]
    comment: str


class LetterWritingFeedback(BaseModel):
    partsFeedback: List[LetterPartFeedback]
    improvementArea: List[ImprovementItem]
    overallComment: str


class PassageQuestion(QuizQuestion):
    skill: Literal["Main Idea", "Detail", "Vocabulary in Context", "Inference"]


class LeveledVersions(BaseModel):
    low: str
    medium: str
    gradeSpecific: str


class VocabularyEntry(BaseModel):
    word: str
    definition: str


class LeveledVocabulary(BaseModel):
    low: List[VocabularyEntry]
    medium: List[VocabularyEntry]
    gradeSpecific: List[VocabularyEntry]


class LeveledText(BaseModel):
    leveledPassages: LeveledVersions
    vocabulary: LeveledVocabulary


class VocabularyQuizQuestion(BaseModel):
    type: Literal["MULTIPLE_CHOICE", "TRUE_FALSE"]
    question: str
    options: Optional[List[str]] = None
    correctAnswer: str


class CVCWord(BaseModel):
    word: str
    image_prompt: str


# ---- schemas handed to the model ----

_STR = {"type": "STRING"}
_STR_LIST = {"type": "ARRAY", "items": _STR}

_QUESTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "type": {"type": "STRING", "enum": ["MULTIPLE_CHOICE"]},
        "question": _STR,
        "options": _STR_LIST,
        "correctAnswer": _STR,
        "explanation": _STR,
    },
    "required": ["type", "question", "options", "correctAnswer"],
}

GRAMMAR_QUIZ_SCHEMA = {"type": "ARRAY", "items": _QUESTION_SCHEMA}

READING_PASSAGE_SCHEMA = {
    "type": "OBJECT",
    "properties": {"passage": _STR, "questions": {"type": "ARRAY", "items": _QUESTION_SCHEMA}},
    "required": ["passage", "questions"],
}

SENTENCE_SCRAMBLE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "sentences": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {"scrambled": _STR_LIST, "correct": _STR},
                "required": ["scrambled", "correct"],
            },
        }
    },
    "required": ["sentences"],
}

VOCABULARY_CARD_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "word": _STR, "meaning": _STR, "form": _STR, "structure": _STR,
        "contextSentences": _STR_LIST, "imagePrompt": _STR,
    },
    "required": ["word", "meaning", "form", "structure", "contextSentences", "imagePrompt"],
}

WORD_DEFINITION_SCHEMA = {
    "type": "OBJECT",
    "properties": {"word": _STR, "partOfSpeech": _STR, "definition": _STR},
    "required": ["word", "partOfSpeech", "definition"],
}

_IMPROVEMENT_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {"mistake": _STR, "correction": _STR, "explanation": _STR},
        "required": ["mistake", "correction", "explanation"],
    },
}

_RUBRIC_SCHEMA = {
    "type": "OBJECT",
    "properties": {"score": {"type": "INTEGER"}, "justification": _STR},
    "required": ["score"],
}

WRITING_FEEDBACK_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "scores": {
            "type": "OBJECT",
            "properties": {
                "paragraphs": _RUBRIC_SCHEMA,
                "grammar": _RUBRIC_SCHEMA,
                "sentenceStructure": _RUBRIC_SCHEMA,
                "spellingAndPunctuation": _RUBRIC_SCHEMA,
                "total": {"type": "INTEGER"},
            },
            "required": ["paragraphs", "grammar", "sentenceStructure", "spellingAndPunctuation", "total"],
        },
        "goodPoints": _STR_LIST,
        "improvementArea": _IMPROVEMENT_SCHEMA,
    },
    "required": ["scores", "goodPoints", "improvementArea"],
}

LETTER_FEEDBACK_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "partsFeedback": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "part": {"type": "STRING", "enum": ["Heading", "Greeting", "Body", "Closing", "Signature"]},
                    "status": {"type": "STRING", "enum": ["Correct", "Needs Improvement", "Missing"]},
                    "comment": _STR,
                },
                "required": ["part", "status", "comment"],
            },
        },
        "improvementArea": _IMPROVEMENT_SCHEMA,
        "overallComment": _STR,
    },
    "required": ["partsFeedback", "improvementArea", "overallComment"],
}

PASSAGE_QUIZ_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            **_QUESTION_SCHEMA["properties"],
            "skill": {"type": "STRING", "enum": ["Main Idea", "Detail", "Vocabulary in Context", "Inference"]},
        },
        "required": ["type", "question", "options", "correctAnswer", "skill"],
    },
}

_WORD_LIST_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {"word": _STR, "definition": _STR},
        "required": ["word", "definition"],
    },
}

LEVELED_TEXT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "leveledPassages": {
            "type": "OBJECT",
            "properties": {"low": _STR, "medium": _STR, "gradeSpecific": _STR},
            "required": ["low", "medium", "gradeSpecific"],
        },
        "vocabulary": {
            "type": "OBJECT",
            "properties": {"low": _WORD_LIST_SCHEMA, "medium": _WORD_LIST_SCHEMA, "gradeSpecific": _WORD_LIST_SCHEMA},
            "required": ["low", "medium", "gradeSpecific"],
        },
    },
    "required": ["leveledPassages", "vocabulary"],
}

VOCABULARY_QUIZ_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "type": {"type": "STRING", "enum": ["MULTIPLE_CHOICE", "TRUE_FALSE"]},
            "question": _STR,
            "options": _STR_LIST,
            "correctAnswer": _STR,
        },
        "required": ["type", "question", "correctAnswer"],
    },
}

CVC_WORDS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "words": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {"word": _STR, "image_prompt": _STR},
                "required": ["word", "image_prompt"],
            },
        }
    },
    "required": ["words"],
}

CVC_DIFFICULTY = {
    "simple": "very common three-letter words with short vowels, like cat, dog, sun",
    "medium": "three-letter words with less common consonants, like fox, jam, web",
    "hard": "three-letter words that are harder to picture or sound out, like nod, vet, gum",
}


# ---- prompts ----

def _build_grammar_quiz_prompt(topic: str, grade_level: str, count: int) -> str:
    return (
        f"Generate a {count}-question multiple-choice grammar quiz for a {grade_level} student on the topic: \"{topic}\".\n"
        "Each question has 3 or 4 options and exactly ONE clearly correct answer; every wrong option must be definitively wrong.\n"
        "For each question give a short explanation a young student can understand.\n"
        "correctAnswer must be copied exactly from options."
    )


def _build_reading_passage_prompt(skill: str, level: str, grade_level: str) -> str:
    length, count = READING_LEVELS[level]
    return (
        f"Create a short, engaging reading passage for a {grade_level} student.\n"
        f"{CULTURAL_CONTEXT}\n"
        f"The passage should be around {length} long.\n"
        f"After the passage, create exactly {count} multiple-choice questions that test the reading skill: \"{skill}\".\n"
        "Each question must have 3 or 4 options and only one clearly correct answer."
    )


def _build_sentence_scramble_prompt(count: int, difficulty: str, grade_level: str) -> str:
    return (
        f"Create {count} sentence scramble puzzles for a {grade_level} student.\n"
        f"Use {SCRAMBLE_DIFFICULTY[difficulty]}.\n"
        "For each, give the scrambled words as an array and the correct sentence as a string "
        "with proper capitalization and punctuation."
    )


def _build_vocabulary_card_prompt(word: str, grade_level: str) -> str:
    return (
        f"You are a curriculum designer for young English learners ({grade_level}).\n"
        f"Create a teaching card for the word \"{word}\":\n"
        "- meaning: a very simple one-sentence definition\n"
        "- form: the word type (Noun, Verb, Adjective, ...)\n"
        "- structure: one sentence on how the word is used, e.g. 'You can see a [word].'\n"
        "- contextSentences: TWO distinct simple sentences using the word\n"
        "- imagePrompt: a kid-friendly cartoon image prompt for the word"
    )


def _build_definition_prompt(word: str, grade_level: str) -> str:
    return (
        f"Provide a simple definition for the word \"{word}\" that a {grade_level} student can easily understand.\n"
        "Return the word, its part of speech, and a very simple one-sentence definition."
    )


def _build_narrative_feedback_prompt(text: str, grade_level: str) -> str:
    return f"""
You are an encouraging English teacher checking a personal narrative written by a {grade_level} student.
Score each category from 1 to 5 with a one-sentence justification:
- paragraphs: clear beginning, middle and end in separate paragraphs. This is the most important category.
- grammar
- sentenceStructure
- spellingAndPunctuation
total is the sum of the four scores (out of 20). If paragraphs scores 1 or 2, total must not exceed 8.
A narrative shorter than 60 words cannot score above 2 for paragraphs.
List 2-3 goodPoints in simple, positive language.
List up to 5 items in improvementArea, each with the exact mistake, its correction and a short explanation.

Student writing:
\"\"\"{text}\"\"\"
"""


def _build_letter_feedback_prompt(text: str, grade_level: str) -> str:
    return f"""
You are an encouraging English teacher checking a friendly letter written by a {grade_level} student.
Give one partsFeedback entry for each part: Heading, Greeting, Body, Closing, Signature.
status is "Correct", "Needs Improvement" or "Missing", with a short kid-friendly comment.
List up to 5 items in improvementArea, each with the exact mistake, its correction and a short explanation.
End with a short, positive overallComment.

Student letter:
\"\"\"{text}\"\"\"
"""


def _build_passage_quiz_prompt(passage: str, grade_level: str) -> str:
    return f"""
Create exactly 6 multiple-choice questions for a {grade_level} student about the passage below.
Cover these skills: Main Idea, Detail, Vocabulary in Context and Inference, and tag each question with its skill.
Each question has 4 options and exactly one correct answer copied exactly from options.

Passage:
\"\"\"{passage}\"\"\"
"""


def _build_leveled_text_prompt(text: str, grade_level: str, suggestions: Optional[str]) -> str:
    prompt = f"""
Rewrite the text below at three reading levels for {grade_level} learners:
- low: much simpler words and short sentences
- medium: slightly simplified
- gradeSpecific: right at {grade_level} level
Keep the meaning and key facts of the original in every version.
For each level also list 3-5 vocabulary words from that version with a simple definition.
{CULTURAL_CONTEXT}
"""
    if suggestions:
        prompt += f"\nTeacher suggestions: {suggestions}\n"
    return prompt + f'\nText:\n"""{text}"""\n'


def _build_vocabulary_quiz_prompt(cards: List["VocabularyWord"], grade_level: str, count: int, types: List[str]) -> str:
    words = "\n".join(f"- {c.word}: {c.meaning}" for c in cards)
    return f"""
Create a {count}-question vocabulary quiz for a {grade_level} student using only these words:
{words}
Allowed question types: {", ".join(types)}.
MULTIPLE_CHOICE questions have exactly 4 options and correctAnswer copied exactly from options.
TRUE_FALSE questions have no options and correctAnswer is "True" or "False".
"""


def _build_cvc_words_prompt(count: int, difficulty: str) -> str:
    return (
        f"List {count} different consonant-vowel-consonant (CVC) words for young spellers.\n"
        f"Use {CVC_DIFFICULTY[difficulty]}.\n"
        "Every word must be a real, kid-friendly noun or verb that can be drawn.\n"
        "For each give the word in lowercase and a simple cartoon image_prompt."
    )


async def _generate(client: GeminiClient, prompt: str, schema: Dict[str, Any], label: str) -> Any:
    try:
        return await client.generate_json(prompt, schema)
    except ContentGenerationError as err:
        logger.warning("Content generation failed", extra={"context": {"content": label, "error": err.message}})
        raise ContentGenerationError(f"Failed to load {label}. Please try again.") from err


def _validated(model, data: Any, label: str):
    try:
        return model.model_validate(data)
    except ValidationError as err:
        logger.warning("Generated content did not match schema", extra={"context": {"content": label}})
        raise ContentGenerationError(f"Failed to load {label}. Please try again.") from err


# ---- requests ----

class GrammarQuizRequest(BaseModel):
    topic: str = Field(min_length=1)
    gradeLevel: str = "Grade 3"
    count: int = Field(default=10, ge=1, le=20)


class ReadingPassageRequest(BaseModel):
    skill: str = Field(min_length=1)
    level: Literal["Beginner", "Intermediate", "Advanced"] = "Beginner"
    gradeLevel: str = "Grade 3"


class SentenceScrambleRequest(BaseModel):
    count: int = Field(default=5, ge=1, le=15)
    difficulty: Literal["starter", "growing", "leaping"] = "starter"
    gradeLevel: str = "Grade 3"


class WordRequest(BaseModel):
    word: str = Field(min_length=1)
    gradeLevel: str = "Grade 3"


class WritingRequest(BaseModel):
    text: str = Field(min_length=1)
    gradeLevel: str = "Grade 3"


class PassageQuizRequest(BaseModel):
    passage: str = Field(min_length=1)
    gradeLevel: str = "Grade 3"


class LeveledTextRequest(BaseModel):
    text: str = Field(min_length=1)
    gradeLevel: str = "Grade 3"
    suggestions: Optional[str] = None


class VocabularyWord(BaseModel):
    word: str = Field(min_length=1)
    meaning: str


class VocabularyQuizRequest(BaseModel):
    cards: List[VocabularyWord] = Field(min_length=1)
    gradeLevel: str = "Grade 3"
    numQuestions: int = Field(default=5, ge=1, le=20)
    questionTypes: List[Literal["MULTIPLE_CHOICE", "TRUE_FALSE"]] = Field(
        default_factory=lambda: ["MULTIPLE_CHOICE", "TRUE_FALSE"], min_length=1
    )


class CVCWordsRequest(BaseModel):
    count: int = Field(default=10, ge=1, le=30)
    difficulty: Literal["simple", "medium", "hard"] = "simple"


def _validated_list(model, data: Any, label: str) -> list:
    if not isinstance(data, list):
        raise ContentGenerationError(f"Failed to load {label}. Please try again.")
    return [_validated(model, item, label) for item in data]


@router.post("/grammar-quiz", response_model=List[QuizQuestion])
async def grammar_quiz(req: GrammarQuizRequest, client: GeminiClient = Depends(get_gemini_client)):
    data = await _generate(client, _build_grammar_quiz_prompt(req.topic, req.gradeLevel, req.count), GRAMMAR_QUIZ_SCHEMA, "grammar quiz")
    if not isinstance(data, list):
        raise ContentGenerationError("Failed to load grammar quiz. Please try again.")
    return [_validated(QuizQuestion, q, "grammar quiz") for q in data]


@router.post("/reading-passage", response_model=ReadingPassage)
async def reading_passage(req: ReadingPassageRequest, client: GeminiClient = Depends(get_gemini_client)):
    data = await _generate(client, _build_reading_passage_prompt(req.skill, req.level, req.gradeLevel), READING_PASSAGE_SCHEMA, "reading passage")
    return _validated(ReadingPassage, data, "reading passage")


@router.post("/sentence-scramble", response_model=List[ScrambledSentence])
async def sentence_scramble(req: SentenceScrambleRequest, client: GeminiClient = Depends(get_gemini_client)):
    data = await _generate(client, _build_sentence_scramble_prompt(req.count, req.difficulty, req.gradeLevel), SENTENCE_SCRAMBLE_SCHEMA, "sentence scramble")
    sentences = data.get("sentences") if isinstance(data, dict) else None
    if not isinstance(sentences, list):
        raise ContentGenerationError("Failed to load sentence scramble. Please try again.")
    return [_validated(ScrambledSentence, s, "sentence scramble") for s in sentences]


@router.post("/vocabulary-card", response_model=VocabularyCard)
async def vocabulary_card(req: WordRequest, client: GeminiClient = Depends(get_gemini_client)):
    data = await _generate(client, _build_vocabulary_card_prompt(req.word, req.gradeLevel), VOCABULARY_CARD_SCHEMA, "vocabulary card")
    return _validated(VocabularyCard, data, "vocabulary card")


@router.post("/definition", response_model=WordDefinition)
async def definition(req: WordRequest, client: GeminiClient = Depends(get_gemini_client)):
    data = await _generate(client, _build_definition_prompt(req.word, req.gradeLevel), WORD_DEFINITION_SCHEMA, "definition")
    return _validated(WordDefinition, data, "definition")


@router.post("/writing-feedback", response_model=WritingFeedback)
async def writing_feedback(req: WritingRequest, client: GeminiClient = Depends(get_gemini_client)):
    data = await _generate(client, _build_narrative_feedback_prompt(req.text, req.gradeLevel), WRITING_FEEDBACK_SCHEMA, "writing feedback")
    return _validated(WritingFeedback, data, "writing feedback")


@router.post("/letter-feedback", response_model=LetterWritingFeedback)
async def letter_feedback(req: WritingRequest, client: GeminiClient = Depends(get_gemini_client)):
    data = await _generate(client, _build_letter_feedback_prompt(req.text, req.gradeLevel), LETTER_FEEDBACK_SCHEMA, "letter feedback")
    return _validated(LetterWritingFeedback, data, "letter feedback")


@router.post("/passage-quiz", response_model=List[PassageQuestion])
async def passage_quiz(req: PassageQuizRequest, client: GeminiClient = Depends(get_gemini_client)):
    data = await _generate(client, _build_passage_quiz_prompt(req.passage, req.gradeLevel), PASSAGE_QUIZ_SCHEMA, "quiz")
    return _validated_list(PassageQuestion, data, "quiz")


@router.post("/leveled-text", response_model=LeveledText)
async def leveled_text(req: LeveledTextRequest, client: GeminiClient = Depends(get_gemini_client)):
    prompt = _build_leveled_text_prompt(req.text, req.gradeLevel, req.suggestions)
    data = await _generate(client, prompt, LEVELED_TEXT_SCHEMA, "leveled text")
    return _validated(LeveledText, data, "leveled text")


@router.post("/vocabulary-quiz", response_model=List[VocabularyQuizQuestion])
async def vocabulary_quiz(req: VocabularyQuizRequest, client: GeminiClient = Depends(get_gemini_client)):
    prompt = _build_vocabulary_quiz_prompt(req.cards, req.gradeLevel, req.numQuestions, req.questionTypes)
    data = await _generate(client, prompt, VOCABULARY_QUIZ_SCHEMA, "vocabulary quiz")
    questions = _validated_list(VocabularyQuizQuestion, data, "vocabulary quiz")
    # Drop anything the client cannot render: unrequested types, or MC without its answer among the options
    playable = [
        q for q in questions
        if q.type in req.questionTypes
        and (q.type == "TRUE_FALSE" and q.correctAnswer in ("True", "False")
             or q.type == "MULTIPLE_CHOICE" and q.options and q.correctAnswer in q.options)
    ]
    if not playable:
        raise ContentGenerationError("Failed to load vocabulary quiz. Please try again.")
    return [q.model_copy(update={"options": None}) if q.type == "TRUE_FALSE" else q for q in playable]


@router.post("/cvc-words", response_model=List[CVCWord])
async def cvc_words(req: CVCWordsRequest, client: GeminiClient = Depends(get_gemini_client)):
    data = await _generate(client, _build_cvc_words_prompt(req.count, req.difficulty), CVC_WORDS_SCHEMA, "words")
    words = data.get("words") if isinstance(data, dict) else None
    return _validated_list(CVCWord, words, "words")


# ---- scramble tiles (stateless: the client sends the state back each move) ----

class ScrambleMove(BaseModel):
    state: ScrambleState
    index: int = Field(ge=0)


def _scramble_view(state: ScrambleState) -> Dict[str, Any]:
    return {
        "state": state.model_dump(),
        "isComplete": state.is_complete,
        "isCorrect": state.is_correct,
        "answer": state.answer,
    }


@router.post("/scramble/choose")
def scramble_choose(move: ScrambleMove):
    try:
        return _scramble_view(move.state.choose(move.index))
    except IndexError as err:
        raise HTTPException(status_code=400, detail=str(err))


@router.post("/scramble/unchoose")
def scramble_unchoose(move: ScrambleMove):
    try:
        return _scramble_view(move.state.unchoose(move.index))
    except IndexError as err:
        raise HTTPException(status_code=400, detail=str(err))


@router.post("/scramble/reset")
def scramble_reset(state: ScrambleState):
    return _scramble_view(state.reset())
