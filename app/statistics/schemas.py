from pydantic import BaseModel


class ChartData(BaseModel):
    """Single chart series with parallel labels and data"""
    label: str
    labels: list[str]
    data: list[float]

    @classmethod
    def zeros(cls, label: str, labels: list[str]) -> "ChartData":
        """Structurally valid result with every bucket at 0"""
        return cls(label=label, labels=labels, data=[0.0] * len(labels))


class ChartDataset(BaseModel):
    label: str
    data: list[float]


class MultiSeriesChartData(BaseModel):
    """Several series sharing the same labels"""
    labels: list[str]
    datasets: list[ChartDataset]


class RoleDistribution(BaseModel):
    """Employee rating volume and average per position title"""
    role_distribution: ChartData
    satisfaction_by_role: ChartData


class PharmacyRatingStats(BaseModel):
    average_rating: float = 0.0
    total_reviews: int = 0
    satisfaction_rate: int = 0
    distribution: dict[str, int] = {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}
    comparison_to_last_period: float = 0.0


class ClientCompletionData(BaseModel):
    started: int = 0
    completed: int = 0
    rate: float = 0.0
    rate_change: float = 0.0


class StatisticsSummary(BaseModel):
    """KPI cards; *_change fields compare against the preceding window"""
    time_frame: str
    satisfaction_rate: int = 0
    satisfaction_change: float = 0.0
    total_feedbacks: int = 0
    feedback_change: int = 0
    total_visitors: int = 0
    visitors_change: int = 0
    feedback_percentage: int = 0
    feedback_percentage_change: float = 0.0
    employee_avg_rating: float = 0.0
    employee_avg_change: float = 0.0
    employee_review_count: int = 0
    employee_review_change: int = 0
    client_completion: ClientCompletionData = ClientCompletionData()
