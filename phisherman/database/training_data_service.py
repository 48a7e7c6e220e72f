#!/usr/bin/env python3
"""
Training Data Service

This module persists training activity (simulations, campaigns and employee
results) and serves the aggregate statistics shown on the employee and
admin/SOC dashboards.
"""

import json
import logging
import random
from typing import Dict, Any, Optional, List, Union

from .base_sqlite_service import BaseSQLiteService
from .sqlite_config import SQLiteConnection
from .training_models import (
    SCHEMA_SQL,
    SEED_DEPARTMENTS,
    SEED_EMPLOYEES,
    SEED_RISK_RANGE,
    DEFAULT_EMPLOYEE_ID,
    DEFAULT_REPORT_LIMIT,
    MAX_SECURITY_SCORE,
    MIN_SECURITY_SCORE,
    CORRECT_ANSWER_BONUS,
    INCORRECT_ANSWER_PENALTY,
    CampaignStatus,
    AdminOverview,
    Department,
    Campaign,
    EmployeeStats,
    Report,
    Simulation,
    ResultRecord,
)
from ..simulate.schemas import SimulationType
from ..exceptions import InvalidInputError, RecordNotFoundError

logger = logging.getLogger(__name__)

CAMPAIGN_SIM_TYPES = {
    SimulationType.EMAIL.value,
    SimulationType.PHONE.value,
    SimulationType.AUDIO.value,
    SimulationType.DEEPFAKE.value,
    SimulationType.VIDEO.value,
}


class TrainingDataService(BaseSQLiteService):
    """Service for departments, employees, simulations, campaigns and results."""

    def __init__(self, connection: Optional[SQLiteConnection] = None, rng: Optional[random.Random] = None):
        super().__init__(connection)
        self.rng = rng or random.Random()

    def initialize(self):
        """Create the tables if they do not exist."""
        self._execute_script(SCHEMA_SQL)
        logger.info("Training database schema ready")

    def seed_if_empty(self) -> bool:
        """
        Insert the demo organisation when no department exists yet.

        Returns:
            True if seed data was inserted
        """
        with self.transaction() as conn:
            count = conn.execute("SELECT COUNT(*) AS count FROM departments").fetchone()["count"]
            if count:
                return False

            low, high = SEED_RISK_RANGE
            for name in SEED_DEPARTMENTS:
                conn.execute(
                    "INSERT INTO departments (name, risk_score) VALUES (?, ?)",
                    (name, self.rng.randint(low, high))
                )
            for employee in SEED_EMPLOYEES:
                conn.execute(
                    """INSERT INTO employees (name, email, dept_id)
                       VALUES (?, ?, (SELECT id FROM departments WHERE name = ?))""",
                    (employee['name'], employee['email'], employee['dept'])
                )

        logger.info(f"Seeded {len(SEED_DEPARTMENTS)} departments and {len(SEED_EMPLOYEES)} employees")
        return True

    # ------------------------------------------------------------------
    # Admin views
    # ------------------------------------------------------------------

    def get_admin_overview(self) -> AdminOverview:
        """Count all results, split into reported (correct) and compromised (incorrect)."""
        row = self._fetch_one("""
            SELECT
                COUNT(*) AS total_sims,
                COALESCE(SUM(CASE WHEN is_correct = 1 THEN 1 ELSE 0 END), 0) AS total_reports,
                COALESCE(SUM(CASE WHEN is_correct = 0 THEN 1 ELSE 0 END), 0) AS total_compromises
            FROM results
        """)
        return AdminOverview(**row) if row else AdminOverview()

    def get_departments(self) -> List[Department]:
        rows = self._fetch_all("""
            SELECT d.*,
                (SELECT COUNT(*) FROM employees e WHERE e.dept_id = d.id) AS employee_count,
                (SELECT AVG(security_score) FROM employees e WHERE e.dept_id = d.id) AS avg_score
            FROM departments d
            ORDER BY d.id
        """)
        return [Department(**row) for row in rows]

    def get_campaigns(self) -> List[Campaign]:
        """List campaigns newest first, with target department and response counts."""
        rows = self._fetch_all("""
            SELECT c.*, d.name AS dept_name,
                (SELECT COUNT(*) FROM results r WHERE r.campaign_id = c.id) AS response_count
            FROM campaigns c
            JOIN departments d ON c.target_dept_id = d.id
            ORDER BY c.launched_at DESC, c.id DESC
        """)
        return [Campaign(**row) for row in rows]

    def create_campaign(self, name: str, target_dept_id: int, sim_type: str) -> int:
        """
        Launch a campaign against a department.

        Args:
            name: Campaign name
            target_dept_id: Department the campaign targets
            sim_type: Simulation kind used by the campaign

        Returns:
            New campaign id
        """
        if not name or not name.strip():
            raise InvalidInputError("Campaign name is required")
        if sim_type not in CAMPAIGN_SIM_TYPES:
            raise InvalidInputError(
                f"Unknown simulation type: {sim_type}. Available: {', '.join(sorted(CAMPAIGN_SIM_TYPES))}"
            )
        if not self._exists("departments", target_dept_id):
            raise RecordNotFoundError(f"Department {target_dept_id} not found")

        campaign_id = self._execute(
            """INSERT INTO campaigns (name, target_dept_id, sim_type, status)
               VALUES (?, ?, ?, ?)""",
            (name.strip(), target_dept_id, sim_type, CampaignStatus.ACTIVE)
        )
        logger.info(f"Launched campaign {campaign_id} ({sim_type}) against department {target_dept_id}")
        return campaign_id

    def update_campaign_status(self, campaign_id: int, status: Union[str, CampaignStatus]) -> None:
        try:
            status = CampaignStatus(status)
        except ValueError:
            raise InvalidInputError(
                f"Unknown campaign status: {status}. Available: {', '.join(s.value for s in CampaignStatus)}"
            ) from None

        with self.transaction() as conn:
            cursor = conn.execute("UPDATE campaigns SET status = ? WHERE id = ?", (status.value, campaign_id))
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Campaign {campaign_id} not found")

    # ------------------------------------------------------------------
    # Employee views
    # ------------------------------------------------------------------

    def get_employee_stats(self, employee_id: int = DEFAULT_EMPLOYEE_ID) -> EmployeeStats:
        row = self._fetch_one("""
            SELECT
                COUNT(*) AS total_simulations,
                COALESCE(SUM(CASE WHEN is_correct = 1 THEN 1 ELSE 0 END), 0) AS correct_count,
                COALESCE(AVG(response_time), 0) AS avg_response_time
            FROM results
            WHERE employee_id = ?
        """, (employee_id,))
        return EmployeeStats(**row) if row else EmployeeStats()

    def get_reports(self, employee_id: int = DEFAULT_EMPLOYEE_ID, limit: int = DEFAULT_REPORT_LIMIT) -> List[Report]:
        """Most recent results for an employee, with the simulation type."""
        rows = self._fetch_all("""
            SELECT
                r.id,
                r.is_correct,
                r.response_time,
                r.feedback,
                r.created_at,
                s.type AS sim_type
            FROM results r
            LEFT JOIN simulations s ON r.simulation_id = s.id
            WHERE r.employee_id = ?
            ORDER BY r.created_at DESC, r.id DESC
            LIMIT ?
        """, (employee_id, limit))
        return [Report(**row) for row in rows]

    def get_security_score(self, employee_id: int) -> int:
        row = self._fetch_one("SELECT security_score FROM employees WHERE id = ?", (employee_id,))
        if row is None:
            raise RecordNotFoundError(f"Employee {employee_id} not found")
        return row["security_score"]

    # ------------------------------------------------------------------
    # Simulations and results
    # ------------------------------------------------------------------

    def save_simulation(self, sim_type: Union[str, SimulationType],
                        content: Optional[Dict[str, Any]] = None,
                        difficulty: Optional[int] = None) -> int:
        """
        Store a generated simulation so results can refer to it.

        Args:
            sim_type: Simulation kind
            content: JSON-serialisable simulation content (no audio)
            difficulty: Difficulty level, if any

        Returns:
            New simulation id
        """
        try:
            sim_type = SimulationType(sim_type)
        except ValueError:
            raise InvalidInputError(f"Unknown simulation type: {sim_type}") from None

        payload = json.dumps(content) if content is not None else None
        return self._execute(
            "INSERT INTO simulations (type, content, difficulty) VALUES (?, ?, ?)",
            (sim_type, payload, difficulty)
        )

    def get_simulation(self, simulation_id: int) -> Simulation:
        row = self._fetch_one("SELECT * FROM simulations WHERE id = ?", (simulation_id,))
        if row is None:
            raise RecordNotFoundError(f"Simulation {simulation_id} not found")
        if row.get("content"):
            row["content"] = json.loads(row["content"])
        return Simulation(**row)

    def record_result(self,
                      is_correct: bool,
                      employee_id: Optional[int] = None,
                      simulation_id: Optional[int] = None,
                      campaign_id: Optional[int] = None,
                      response_time: Optional[int] = None,
                      feedback: Optional[str] = None) -> ResultRecord:
        """
        Store an employee's answer and adjust their security score.

        A missing simulation id records the answer against a new 'unknown'
        simulation. Correct answers add 2 points (max 100), incorrect
        answers cost 5 (min 0).

        Args:
            is_correct: Whether the employee handled the simulation correctly
            employee_id: Employee answering; defaults to the current user
            simulation_id: Simulation answered
            campaign_id: Campaign the simulation belongs to
            response_time: Milliseconds taken to answer
            feedback: Feedback text shown to the employee

        Returns:
            ResultRecord including the updated security score
        """
        employee_id = employee_id or DEFAULT_EMPLOYEE_ID
        response_time = response_time or 0
        feedback = feedback or ""
        if response_time < 0:
            raise InvalidInputError("Response time cannot be negative")

        with self.transaction() as conn:
            if conn.execute("SELECT 1 FROM employees WHERE id = ?", (employee_id,)).fetchone() is None:
                raise RecordNotFoundError(f"Employee {employee_id} not found")
            if campaign_id is not None and \
                    conn.execute("SELECT 1 FROM campaigns WHERE id = ?", (campaign_id,)).fetchone() is None:
                raise RecordNotFoundError(f"Campaign {campaign_id} not found")

            if not simulation_id:
                simulation_id = conn.execute(
                    "INSERT INTO simulations (type, difficulty) VALUES (?, ?)",
                    (SimulationType.UNKNOWN.value, 1)
                ).lastrowid
            elif conn.execute("SELECT 1 FROM simulations WHERE id = ?", (simulation_id,)).fetchone() is None:
                raise RecordNotFoundError(f"Simulation {simulation_id} not found")

            result_id = conn.execute(
                """INSERT INTO results (employee_id, simulation_id, campaign_id, is_correct, response_time, feedback)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (employee_id, simulation_id, campaign_id, 1 if is_correct else 0, response_time, feedback)
            ).lastrowid

            if is_correct:
                conn.execute(
                    "UPDATE employees SET security_score = MIN(?, security_score + ?) WHERE id = ?",
                    (MAX_SECURITY_SCORE, CORRECT_ANSWER_BONUS, employee_id)
                )
            else:
                conn.execute(
                    "UPDATE employees SET security_score = MAX(?, security_score - ?) WHERE id = ?",
                    (MIN_SECURITY_SCORE, INCORRECT_ANSWER_PENALTY, employee_id)
                )

            score = conn.execute(
                "SELECT security_score FROM employees WHERE id = ?", (employee_id,)
            ).fetchone()["security_score"]

        logger.info(
            f"Recorded result {result_id} for employee {employee_id}: "
            f"{'correct' if is_correct else 'incorrect'}, score now {score}"
        )
        return ResultRecord(
            id=result_id,
            employee_id=employee_id,
            simulation_id=simulation_id,
            campaign_id=campaign_id,
            is_correct=bool(is_correct),
            response_time=response_time,
            feedback=feedback,
            security_score=score
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_all_results(self) -> List[Dict[str, Any]]:
        """Every result joined with its employee, department, simulation and campaign."""
        rows = self._fetch_all("""
            SELECT
                r.id AS result_id,
                r.created_at,
                r.employee_id,
                e.name AS employee_name,
                d.name AS department,
                s.type AS sim_type,
                s.difficulty,
                r.campaign_id,
                c.name AS campaign_name,
                r.is_correct,
                r.response_time,
                r.feedback
            FROM results r
            LEFT JOIN employees e ON r.employee_id = e.id
            LEFT JOIN departments d ON e.dept_id = d.id
            LEFT JOIN simulations s ON r.simulation_id = s.id
            LEFT JOIN campaigns c ON r.campaign_id = c.id
            ORDER BY r.id
        """)
        for row in rows:
            row["is_correct"] = bool(row["is_correct"])
        return rows


# Global service instance
_global_service: Optional[TrainingDataService] = None


def get_training_data_service() -> TrainingDataService:
    """
    Get or create global training data service instance.

    Returns:
        TrainingDataService instance
    """
    global _global_service
    if _global_service is None:
        _global_service = TrainingDataService()
    return _global_service
