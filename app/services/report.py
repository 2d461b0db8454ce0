"""Report service: subject results, semester totals and class rankings."""

import logging
from collections import defaultdict

from app.schemas.assessment import AssessmentRecord, ComponentScores, Semester, SubjectCategory
from app.schemas.common import round_display
from app.schemas.report import (
    ClassRankingEntry,
    ClassRankingResponse,
    CohortEntry,
    OverallStatistics,
    RankingResult,
    SemesterResult,
    SemesterSummary,
    StudentReport,
    SubjectCategories,
    SubjectInfo,
    SubjectReport,
)
from app.services.aggregator import display_percentages
from app.services.competency import classify, is_competent
from app.services.ranking import rank
from app.services.repository import AssessmentRepository
from app.services.rollup import (
    SEMESTERS,
    annual_statistics,
    scores_by_subject,
    semester_statistics,
    subject_rollup,
)

logger = logging.getLogger(__name__)

StudentScores = dict[int, dict[Semester, ComponentScores]]


class ClassResults:
    """Aggregated scores of every student of a class for one year."""

    def __init__(self, records: list[AssessmentRecord], subjects: dict[int, SubjectInfo]):
        self.subjects = subjects
        by_student: dict[int, list[AssessmentRecord]] = defaultdict(list)
        for record in records:
            by_student[record.student_id].append(record)
        self.scores: dict[int, StudentScores] = {
            student_id: scores_by_subject(student_records)
            for student_id, student_records in by_student.items()
        }

    def semester_statistics(self, semester: Semester) -> dict[int, OverallStatistics]:
        """Semester totals of the students who have marks in that semester."""
        results = {}
        for student_id, scores in self.scores.items():
            stats = semester_statistics(scores, semester, self.subjects)
            if stats is not None:
                results[student_id] = stats
        return results

    def annual_statistics(self) -> dict[int, OverallStatistics]:
        """Year totals of the students who have any marks."""
        results = {}
        for student_id, scores in self.scores.items():
            stats = annual_statistics(scores, self.subjects)
            if stats is not None:
                results[student_id] = stats
        return results

    @staticmethod
    def ranking(statistics: dict[int, OverallStatistics]) -> dict[int, RankingResult]:
        """Rank students on their overall average."""
        return rank(
            CohortEntry(student_id=student_id, aggregate_score=stats.overall_average)
            for student_id, stats in statistics.items()
        )


def _display_statistics(stats: OverallStatistics) -> OverallStatistics:
    return OverallStatistics(
        total_credits=stats.total_credits,
        total_marks=round_display(stats.total_marks),
        overall_average=round_display(stats.overall_average),
        subject_count=stats.subject_count,
    )


def categorize_subjects(subjects: list[SubjectReport]) -> SubjectCategories:
    """Group subject rows by category, keeping their order."""
    return SubjectCategories(
        core_specific=[s for s in subjects if s.category == SubjectCategory.CORE_SPECIFIC],
        core_general=[s for s in subjects if s.category == SubjectCategory.CORE_GENERAL],
        complementary=[s for s in subjects if s.category == SubjectCategory.COMPLEMENTARY],
    )


class ReportService:
    """Builds report-card data and class rankings from stored marks."""

    def __init__(self, repository: AssessmentRepository):
        self.repository = repository

    def _load_class(self, class_id: int, academic_year: str) -> ClassResults:
        records = self.repository.list_records(class_id=class_id, academic_year=academic_year)
        subjects = self.repository.get_subjects({r.subject_id for r in records})
        return ClassResults(records, subjects)

    def _subject_info(self, results: ClassResults, subject_id: int) -> SubjectInfo:
        subject = results.subjects.get(subject_id)
        if subject is None:
            logger.warning(f"No catalogue entry for subject {subject_id}; using defaults")
            subject = SubjectInfo(subject_id=subject_id, code=str(subject_id))
        return subject

    def _subject_reports(
        self, results: ClassResults, scores: StudentScores
    ) -> tuple[list[SubjectReport], list[SemesterResult]]:
        subject_reports = []
        semester_results = []
        for subject_id in sorted(scores):
            subject = self._subject_info(results, subject_id)
            terms = scores[subject_id]
            summary = subject_rollup(terms)
            verdict_average = summary.verdict_average

            for semester in SEMESTERS:
                if semester not in terms:
                    continue
                avg = terms[semester].weighted_total
                semester_results.append(
                    SemesterResult(
                        subject_id=subject_id,
                        semester=semester,
                        percentage_by_component=display_percentages(terms[semester]),
                        observation=classify(subject.category, avg) if avg > 0 else None,
                    )
                )

            subject_reports.append(
                SubjectReport(
                    subject_id=subject_id,
                    code=subject.code,
                    title=subject.title,
                    credits=subject.credits,
                    category=subject.category,
                    terms={
                        semester: display_percentages(terms[semester])
                        for semester in SEMESTERS
                        if semester in terms
                    },
                    annual_average=round_display(summary.annual_average),
                    used_annual=summary.used_annual,
                    observation=(
                        classify(subject.category, verdict_average)
                        if verdict_average is not None
                        else None
                    ),
                    flagged=not is_competent(subject.category, verdict_average),
                )
            )
        return subject_reports, semester_results

    def student_report(
        self,
        student_id: int,
        class_id: int,
        academic_year: str,
    ) -> StudentReport | None:
        """Report-card data for one student, or None if they have no marks."""
        results = self._load_class(class_id, academic_year)
        scores = results.scores.get(student_id)
        if not scores:
            logger.info(
                f"No assessment data for student {student_id} in class {class_id} ({academic_year})"
            )
            return None

        subjects, semester_results = self._subject_reports(results, scores)

        summaries = []
        for semester in SEMESTERS:
            cohort = results.semester_statistics(semester)
            stats = cohort.get(student_id)
            if stats is None:
                continue
            summaries.append(
                SemesterSummary(
                    semester=semester,
                    total_marks=round_display(stats.total_marks),
                    max_marks=stats.subject_count * 100,
                    percentage=round_display(stats.overall_average),
                    subject_count=stats.subject_count,
                    total_credits=stats.total_credits,
                    ranking=results.ranking(cohort).get(student_id),
                )
            )

        annual = results.annual_statistics()
        return StudentReport(
            student_id=student_id,
            class_id=class_id,
            academic_year=academic_year,
            subjects=subjects,
            semester_results=semester_results,
            semester_summaries=summaries,
            overall_statistics=_display_statistics(annual[student_id]),
            overall_ranking=results.ranking(annual).get(student_id),
            categories=categorize_subjects(subjects),
        )

    def class_ranking(
        self,
        class_id: int,
        academic_year: str,
        semester: Semester | None = None,
    ) -> ClassRankingResponse:
        """Rank every student of a class for the year or for one semester."""
        results = self._load_class(class_id, academic_year)
        if semester is None:
            statistics = results.annual_statistics()
        else:
            statistics = results.semester_statistics(semester)
        rankings = results.ranking(statistics)

        entries = [
            ClassRankingEntry(
                student_id=student_id,
                total_marks=round_display(statistics[student_id].total_marks),
                overall_average=round_display(statistics[student_id].overall_average),
                total_credits=statistics[student_id].total_credits,
                subject_count=statistics[student_id].subject_count,
                position=ranking.position,
                percentile=ranking.percentile,
            )
            for student_id, ranking in rankings.items()
        ]
        entries.sort(key=lambda e: (e.position, e.student_id))

        return ClassRankingResponse(
            class_id=class_id,
            academic_year=academic_year,
            semester=semester,
            total_students=len(entries),
            rankings=entries,
        )
