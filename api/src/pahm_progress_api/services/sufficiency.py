from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from .records import PracticeSession, Questionnaire, SelfAssessment

logger = logging.getLogger(__name__)

MIN_SESSIONS_ALONE = 3
MIN_SESSIONS_WITH_QUESTIONNAIRE = 1


@dataclass(frozen=True)
class DataCompleteness:
    questionnaire: bool
    self_assessment: bool
    practice_sessions: bool
    sufficient: bool

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


def sufficient(
    questionnaire: Questionnaire | None,
    self_assessment: SelfAssessment | None,
    sessions: tuple[PracticeSession, ...] | list[PracticeSession],
) -> bool:
    questionnaire_done = questionnaire is not None and questionnaire.completed
    assessment_done = self_assessment is not None and self_assessment.completed
    count = len(sessions)
    return bool(
        (questionnaire_done and assessment_done)
        or count >= MIN_SESSIONS_ALONE
        or (questionnaire_done and count >= MIN_SESSIONS_WITH_QUESTIONNAIRE)
    )


def assess_completeness(
    questionnaire: Questionnaire | None,
    self_assessment: SelfAssessment | None,
    sessions: tuple[PracticeSession, ...] | list[PracticeSession],
) -> DataCompleteness:
    completeness = DataCompleteness(
        questionnaire=questionnaire is not None and questionnaire.completed,
        self_assessment=self_assessment is not None and self_assessment.completed,
        practice_sessions=len(sessions) > 0,
        sufficient=sufficient(questionnaire, self_assessment, sessions),
    )
    if not completeness.sufficient:
        logger.info("Insufficient data for scoring: %s", completeness.as_dict())
    return completeness
