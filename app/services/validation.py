"""Result submission validation.

Runs before a submission is stored, so the aggregation code can assume
well-formed, balanced tallies.
"""

from pydantic import BaseModel, Field

from app.services.models import CandidateResult, ReportInfo


class ResultSubmission(BaseModel):
    """A result as entered by a polling station (form or CSV line)."""

    election_id: str = ""
    polling_station: str = ""
    registered_voters: int = 0
    turnout: int = 0
    candidate_results: list[CandidateResult] = Field(default_factory=list)
    invalid_ballots: int = 0
    blank_ballots: int = 0
    report_info: ReportInfo | None = None


class SubmissionValidator:
    """Check tally invariants of a submission."""

    MIN_REGISTERED_VOTERS = 1

    @classmethod
    def validate(cls, submission: ResultSubmission) -> dict[str, str]:
        """
        Validate a submission.

        Returns:
            Mapping of field name to error message; empty when valid
        """
        errors: dict[str, str] = {}

        if not submission.election_id.strip():
            errors["election_id"] = "Veuillez sélectionner une élection."

        if not submission.polling_station.strip():
            errors["polling_station"] = "Veuillez sélectionner un bureau de vote."

        if submission.registered_voters < cls.MIN_REGISTERED_VOTERS:
            errors["registered_voters"] = (
                "Le nombre d'électeurs inscrits doit être d'au moins 1."
            )

        if submission.turnout < 0:
            errors["turnout"] = "La participation ne peut pas être négative."
        elif submission.turnout > submission.registered_voters:
            errors["turnout"] = (
                "La participation ne peut pas dépasser le nombre d'électeurs inscrits."
            )

        if submission.invalid_ballots < 0:
            errors["invalid_ballots"] = "Les bulletins nuls ne peuvent pas être négatifs."

        if not submission.candidate_results:
            errors["candidate_results"] = "Au moins un candidat est requis."
        elif any(cr.votes < 0 for cr in submission.candidate_results):
            errors["candidate_results"] = "Les votes ne peuvent pas être négatifs."

        if submission.blank_ballots < 0:
            errors["blank_ballots"] = "Les bulletins blancs ne peuvent pas être négatifs."
        else:
            cast = (
                sum(cr.votes for cr in submission.candidate_results)
                + submission.invalid_ballots
                + submission.blank_ballots
            )
            if cast != submission.turnout:
                # Reported on the last field of the tally group
                errors["blank_ballots"] = (
                    "La somme de tous les votes (candidats, nuls, blancs) "
                    "doit être égale à la participation."
                )

        return errors


def validate_submission(submission: ResultSubmission) -> dict[str, str]:
    return SubmissionValidator.validate(submission)
