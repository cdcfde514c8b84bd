"""Report types, their columns and row formatting"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Tuple
from app.statistics.metrics import average, rating_distribution, satisfaction_rate
from app.utils.timezone import format_date

FORMATS = {"PDF": "pdf", "EXCEL": "xlsx"}
SUGGESTION_MAX_LENGTH = 100
EMPTY_CELL = "-"


@dataclass(frozen=True)
class ReportDefinition:
    type: str
    title: str
    description: str
    headings: Tuple[str, ...]
    # Relative PDF column widths, summing to 1
    column_widths: Tuple[float, ...]


REPORT_DEFINITIONS = {
    definition.type: definition
    for definition in [
        ReportDefinition(
            "employees",
            "Liste des employés",
            "Employés de la pharmacie avec leur poste",
            ("Nom", "Prénom", "Email", "Poste", "Date d'embauche"),
            (0.2, 0.2, 0.3, 0.15, 0.15),
        ),
        ReportDefinition(
            "clients",
            "Liste des clients",
            "Clients ayant laissé leurs coordonnées",
            ("Nom", "Prénom", "Email", "Téléphone", "Dernière visite"),
            (0.18, 0.18, 0.3, 0.17, 0.17),
        ),
        ReportDefinition(
            "pharmacy-reviews",
            "Avis sur la pharmacie",
            "Notes attribuées à la pharmacie",
            ("Date", "Note", "Commentaire", "Client"),
            (0.15, 0.1, 0.5, 0.25),
        ),
        ReportDefinition(
            "employee-reviews",
            "Avis sur les employés",
            "Notes attribuées aux employés",
            ("Employé", "Date", "Note", "Commentaire", "Client"),
            (0.2, 0.13, 0.08, 0.39, 0.2),
        ),
        ReportDefinition(
            "specific-employee-reviews",
            "Avis sur l'employé",
            "Notes attribuées à un employé",
            ("Date", "Note", "Commentaire", "Client"),
            (0.15, 0.1, 0.5, 0.25),
        ),
        ReportDefinition(
            "suggestions",
            "Suggestions des clients",
            "Suggestions laissées sur la borne",
            ("Date", "Suggestion", "Client", "Statut"),
            (0.13, 0.52, 0.2, 0.15),
        ),
    ]
}


def cell(value) -> str:
    if value is None or value == "":
        return EMPTY_CELL
    return str(value)


def truncate(text: str, max_length: int = SUGGESTION_MAX_LENGTH) -> str:
    """Cut text longer than max_length to max_length - 3 chars plus '...'"""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


def employee_row(user) -> List[str]:
    return [
        cell(user.last_name),
        cell(user.first_name),
        cell(user.email),
        cell(user.position_title),
        format_date(user.created_at),
    ]


def client_row(client) -> List[str]:
    return [
        cell(client.last_name),
        cell(client.first_name),
        cell(client.email),
        cell(client.phone),
        format_date(client.last_visit),
    ]


def pharmacy_review_row(review) -> List[str]:
    return [format_date(review.date), f"{review.rating}/5", cell(review.comment), review.client_name]


def employee_review_row(review) -> List[str]:
    return [
        review.employee_name,
        format_date(review.date),
        f"{review.rating}/5",
        cell(review.comment),
        review.client_name,
    ]


def specific_employee_review_row(review) -> List[str]:
    return employee_review_row(review)[1:]


def suggestion_row(suggestion) -> List[str]:
    return [
        format_date(suggestion.date),
        truncate(suggestion.suggestion),
        suggestion.client_name,
        suggestion.status,
    ]


def summarize_employees(users) -> List[Tuple[str, str]]:
    positions = {u.position_title for u in users if u.position_title}
    return [
        ("Nombre total d'employés", str(len(users))),
        ("Employés actifs", str(sum(1 for u in users if u.is_active))),
        ("Postes représentés", str(len(positions))),
    ]


def summarize_clients(clients, active_since: datetime) -> List[Tuple[str, str]]:
    return [
        ("Nombre total de clients", str(len(clients))),
        ("Clients actifs (3 derniers mois)", str(sum(1 for c in clients if c.last_visit >= active_since))),
        ("Clients ayant donné leur consentement", str(sum(1 for c in clients if c.consent))),
    ]


def summarize_reviews(ratings: List[int]) -> List[Tuple[str, str]]:
    summary = [
        ("Nombre total d'avis", str(len(ratings))),
        ("Note moyenne", f"{average(ratings)}/5"),
        ("Taux de satisfaction", f"{satisfaction_rate(ratings)}%"),
    ]
    distribution = rating_distribution(ratings)
    for star in range(5, 0, -1):
        summary.append((f"Avis {star} étoile{'s' if star > 1 else ''}", str(distribution[star - 1])))
    return summary


def summarize_suggestions(suggestions) -> List[Tuple[str, str]]:
    processed = sum(1 for s in suggestions if s.status == "Traité")
    return [
        ("Nombre total de suggestions", str(len(suggestions))),
        ("Suggestions traitées", str(processed)),
        ("Nouvelles suggestions", str(len(suggestions) - processed)),
    ]


@dataclass
class ReportDocument:
    """Everything a renderer needs, already formatted as text"""
    definition: ReportDefinition
    title: str
    period: str
    generated_at: str
    organisation: str
    rows: List[List[str]]
    summary: List[Tuple[str, str]]

    @property
    def headings(self) -> Tuple[str, ...]:
        return self.definition.headings
