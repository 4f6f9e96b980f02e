"""
Pydantic shapes for everything that is stored or crosses the API.

Stored JSON uses the camelCase field names the front end already reads and
writes, so every model accepts and dumps by alias.
"""
from __future__ import annotations

from datetime import date as date_type
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


GRADES = ("Grade 3 O", "Grade 3 P")
Grade = Literal["Grade 3 O", "Grade 3 P"]
MasteryLevel = Literal["Needs Support", "Developing", "Mastery"]

# Python weekday(): Monday == 0. School days are Sunday to Thursday.
EXCLUDED_WEEKDAYS = {4: "Friday", 5: "Saturday"}


class CamelModel(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="ignore")

	def to_json_dict(self) -> dict:
		return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SessionInfo(CamelModel):
	model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

	date: str
	day: Optional[str] = None
	period: int = Field(ge=1, le=7)
	grade: Grade

	@model_validator(mode="before")
	@classmethod
	def _derive_day(cls, data):
		# The weekday is always derived from the date, never trusted from input
		if not isinstance(data, dict) or data.get("date") is None:
			return data
		try:
			parsed = date_type.fromisoformat(str(data["date"]))
		except ValueError:
			raise ValueError("date must be formatted YYYY-MM-DD")
		if parsed.weekday() in EXCLUDED_WEEKDAYS:
			raise ValueError("School days are Sunday to Thursday.")
		return {**data, "date": parsed.isoformat(), "day": parsed.strftime("%A")}

	@property
	def scope(self) -> tuple:
		return (self.date, self.grade, self.period)


class ParticipationRecord(CamelModel):
	id: str
	student_name: str = Field(alias="studentName")
	grade: str
	date: str
	day: str = ""
	period: int
	timestamp: int
	duration_seconds: Optional[float] = Field(default=None, alias="durationSeconds")
	# Records written before scoring existed carry neither score nor isCorrect
	score: Optional[int] = None
	is_correct: Optional[bool] = Field(default=None, alias="isCorrect")

	def in_session(self, date: str, grade: str, period: int) -> bool:
		return self.date == date and self.grade == grade and int(self.period) == int(period)


class ImprovementItem(CamelModel):
	mistake: str
	correction: str
	explanation: str


class SkillScore(CamelModel):
	correct: int
	total: int


ActivityType = Literal[
	"Writing", "Grammar", "Reading", "Cover the Basics", "Learn to Write",
	"Guided Writing", "Vocabulary", "Spelling", "Baseline",
]


class ActivityRecord(CamelModel):
	id: str
	student_name: str = Field(alias="studentName")
	student_section: str = Field(alias="studentSection")
	date: str
	activity_type: ActivityType = Field(alias="activityType")
	category: str
	score: float
	total: float
	improvement_area: Optional[List[ImprovementItem]] = Field(default=None, alias="improvementArea")
	submitted_text: Optional[str] = Field(default=None, alias="submittedText")
	time_spent_seconds: Optional[float] = Field(default=None, alias="timeSpentSeconds")
	skill_scores: Optional[Dict[str, SkillScore]] = Field(default=None, alias="skillScores")


class ActivityIn(CamelModel):
	student_name: str = Field(alias="studentName")
	activity_type: ActivityType = Field(alias="activityType")
	category: str
	score: float
	total: float
	improvement_area: Optional[List[ImprovementItem]] = Field(default=None, alias="improvementArea")
	submitted_text: Optional[str] = Field(default=None, alias="submittedText")
	time_spent_seconds: Optional[float] = Field(default=None, alias="timeSpentSeconds")
	skill_scores: Optional[Dict[str, SkillScore]] = Field(default=None, alias="skillScores")


class StudentProfile(CamelModel):
	name: str
	needs_support: bool = Field(default=False, alias="needsSupport")
	is_special_needs: bool = Field(default=False, alias="isSpecialNeeds")
	primary_language: str = Field(default="", alias="primaryLanguage")
	baseline_taken: bool = Field(default=False, alias="baselineTaken")
	mastery_level: Optional[MasteryLevel] = Field(default=None, alias="masteryLevel")


class ContentAssignment(CamelModel):
	id: str
	module_id: str = Field(alias="moduleId")
	activity_type: Literal["module", "custom-reading", "custom-vocabulary", "leveled-text"] = Field(alias="activityType")
	student_name: str = Field(alias="studentName")
	content_payload: Optional[str] = Field(default=None, alias="contentPayload")
	access_code: Optional[str] = Field(default=None, alias="accessCode")
	date_assigned: str = Field(alias="dateAssigned")
	activity_id: Optional[str] = Field(default=None, alias="activityId")


class ClassroomSettings(CamelModel):
	enable_leaderboard: bool = Field(default=False, alias="enableLeaderboard")


class Curriculum(CamelModel):
	# Stored curricula carry sections (guided writing levels, custom activities) that only the front end reads
	model_config = ConfigDict(populate_by_name=True, extra="allow")

	grade_level: str = Field(default="Grade 3", alias="gradeLevel")
	app_name: str = Field(default="English Genius", alias="appName")
	grammar_topics: List[str] = Field(default_factory=list, alias="grammarTopics")
	reading_skills: List[str] = Field(default_factory=list, alias="readingSkills")
	learn_to_write_categories: List[str] = Field(default_factory=list, alias="learnToWriteCategories")
	feature_toggles: Dict[str, bool] = Field(default_factory=dict, alias="featureToggles")
	classroom_settings: ClassroomSettings = Field(default_factory=ClassroomSettings, alias="classroomSettings")
	student_profiles: List[StudentProfile] = Field(default_factory=list, alias="studentProfiles")
	assignments: List[ContentAssignment] = Field(default_factory=list)

	def profile(self, name: str) -> Optional[StudentProfile]:
		for p in self.student_profiles:
			if p.name == name:
				return p
		return None


class LeaderboardEntry(BaseModel):
	name: str
	score: int


class CloudConfig(CamelModel):
	model_config = ConfigDict(populate_by_name=True, extra="allow")

	api_key: str = Field(alias="apiKey", min_length=1)
	project_id: str = Field(alias="projectId", min_length=1)
	auth_domain: Optional[str] = Field(default=None, alias="authDomain")
	storage_bucket: Optional[str] = Field(default=None, alias="storageBucket")
	messaging_sender_id: Optional[str] = Field(default=None, alias="messagingSenderId")
	app_id: Optional[str] = Field(default=None, alias="appId")
