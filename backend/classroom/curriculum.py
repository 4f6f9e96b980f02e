from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Set

from fastapi import BackgroundTasks
from pydantic import ValidationError

from .cloud import CloudClient
from .schemas import ContentAssignment, Curriculum, MasteryLevel, StudentProfile
from .storage import CURRICULUM_KEY, LocalStore

logger = logging.getLogger(__name__)


STUDENTS_BY_GRADE: Dict[str, List[str]] = {
	"Grade 3 O": [
		"Bander Mohammed A Al Barrak", "Aarish Asif khan", "Mohamed Gaballa Ramadan Gaballa Eltabakh", "Ziyad Wasim Baig",
		"Tameem Ahmed G Alharbi", "Omar Faisal A Al Qanass", "Lohitashwa Lakshmanaperumal", "Muhammad - - Ahmed",
		"Albraa Maher A Ainaddin", "Mohammad Murtaza Mir", "Abdul Muiz Aboobacker Siddhique", "Abdulrahman Hamoud A Alsaif",
		"Abdur Rahman", "Azzam Hafidz Althof", "Faisal Sultan H Alshammari", "Husam Yousef A Alshyeb",
		"Kareem Alturabi Mukhtar Ahmed", "Abdullah Asan Wirba", "Abdullah Feras A Al Qanass", "Malik Ahmed Mohamed Thabet Hassan",
		"Saad Bin Waqas", "Mohammad Rayyan", "Syed Ahmed Irfan", "Muhammad Moosa", "Zain Sayed Gouda Sayed Abbas", "Rehan Hussain",
	],
	"Grade 3 P": [
		"Abdullah faisal A Alboainain", "Ali Salman A Alshammari", "Ahmed Mohammed S Al Fares", "Faris Naif S Alruwais",
		"Muhammad Ahmad Raheel", "Mustafa Mahmoud Gamal Mohammed Abdelghany Azouz", "Mirza Muhammad Ali Baig Chaghtai",
		"Khalid Fayez A Aldossary", "Hamza Ahmed Hamdy Hussein Ezeldin Abdelhamid", "Azzam Khalid A Alsumairy",
		"Badreldin Khalid Badreldin Mohamed", "Burhan Ijaz", "Hadi Hussain S Alrasheed", "Hazem Ahmed Hamdy Hussein Ezeldin Abdelhamid",
		"Mohammad Dawood Imran", "Muhammad - Rayyan", "Sharaf Abdulrahman S Alsaqabi", "Suleiman Tijjani Ahmad",
		"Turki Abdullah S Alanazi", "Izyan Salman Tariq", "Ahmed Abdullah A Baghdadi", "Adi Ferhad Bin Mohd Fadzlee",
		"Ali Hussain Syed", "Muhammad Hadif Amsyar Bin Izwan Shah", "Misbah Rahman", "Adam Mohamed Tarek Elsabbagh",
	],
}

FEATURES = (
	"writingChecker", "grammarPractice", "readingComprehension", "coverTheBasics",
	"learnToWrite", "guidedWriting", "textLeveler", "reportCard",
	"vocabularyPractice", "spellingStation", "diaryLog",
)


def default_curriculum() -> Curriculum:
	return Curriculum(
		grade_level="Grade 3",
		app_name="English Genius",
		grammar_topics=[
			"Singular & Plural Nouns", "Common & Proper Nouns", "Abstract & Concrete Nouns",
			"Subject & Predicate", "Subject Verb Agreement (s/es)", "Verbs", "Adjectives",
			"Pronouns", "Punctuation", "Tenses (Past, Present, Future)",
		],
		reading_skills=[
			"Main Idea", "Inferencing", "Sequencing", "Cause and Effect",
			"Vocabulary in Context", "Visualizing", "Prediction",
		],
		learn_to_write_categories=["Personal Narrative", "Letter Writing"],
		feature_toggles={name: True for name in FEATURES},
	)


def roster_for(grade: str) -> List[str]:
	return list(STUDENTS_BY_GRADE.get(grade, []))


class CurriculumStore:
	"""The single curriculum document: local copy first, cloud copy when writable."""

	def __init__(self, store: LocalStore, cloud: Optional[CloudClient] = None) -> None:
		self.store = store
		self.cloud = cloud

	def load(self) -> Curriculum:
		data = self.store.get_json(CURRICULUM_KEY, None)
		if not data:
			return default_curriculum()
		try:
			return Curriculum.model_validate(data)
		except ValidationError:
			logger.warning("Stored curriculum is malformed, using defaults")
			return default_curriculum()

	def save(self, curriculum: Curriculum, tasks: Optional[BackgroundTasks] = None) -> Curriculum:
		payload = curriculum.to_json_dict()
		self.store.set_json(CURRICULUM_KEY, payload)
		if tasks is not None and self.cloud is not None and self.cloud.is_writable():
			tasks.add_task(self.cloud.save_curriculum, payload)
		return curriculum

	def replace_from_cloud(self, data: Dict[str, Any]) -> Optional[Curriculum]:
		try:
			curriculum = Curriculum.model_validate(data)
		except ValidationError:
			logger.warning("Cloud curriculum is malformed, keeping the local copy")
			return None
		self.store.set_json(CURRICULUM_KEY, curriculum.to_json_dict())
		return curriculum

	def special_needs(self, grade: str) -> Set[str]:
		roster = set(roster_for(grade))
		return {p.name for p in self.load().student_profiles if p.is_special_needs and p.name in roster}

	def upsert_profile(self, name: str, changes: Dict[str, Any], tasks: Optional[BackgroundTasks] = None) -> StudentProfile:
		curriculum = self.load()
		profiles = list(curriculum.student_profiles)
		existing = curriculum.profile(name)
		base = existing.to_json_dict() if existing else {"name": name}
		updated = StudentProfile.model_validate({**base, **changes, "name": name})
		if existing:
			profiles[profiles.index(existing)] = updated
		else:
			profiles.append(updated)
		self.save(curriculum.model_copy(update={"student_profiles": profiles}), tasks)
		return updated

	def complete_baseline(self, name: str, level: MasteryLevel, tasks: Optional[BackgroundTasks] = None) -> StudentProfile:
		return self.upsert_profile(name, {"baselineTaken": True, "masteryLevel": level}, tasks)

	def add_assignment(self, assignment: ContentAssignment, tasks: Optional[BackgroundTasks] = None) -> ContentAssignment:
		curriculum = self.load()
		assignments = [a for a in curriculum.assignments if a.id != assignment.id] + [assignment]
		self.save(curriculum.model_copy(update={"assignments": assignments}), tasks)
		return assignment

	def delete_assignment(self, assignment_id: str, tasks: Optional[BackgroundTasks] = None) -> bool:
		curriculum = self.load()
		assignments = [a for a in curriculum.assignments if a.id != assignment_id]
		if len(assignments) == len(curriculum.assignments):
			return False
		self.save(curriculum.model_copy(update={"assignments": assignments}), tasks)
		return True
