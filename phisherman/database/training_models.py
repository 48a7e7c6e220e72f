#!/usr/bin/env python3
"""
SQLite Schema and Models for Training Data

This module defines the tables that hold the organisation (departments and
employees), generated simulations, campaigns and employee results, plus the
row models returned by the data service.
"""

from typing import Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field


class CampaignStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    SCHEDULED = "scheduled"


# Employee 1 stands in for the signed-in user
DEFAULT_EMPLOYEE_ID = 1

MAX_SECURITY_SCORE = 100
MIN_SECURITY_SCORE = 0
CORRECT_ANSWER_BONUS = 2
INCORRECT_ANSWER_PENALTY = 5

DEFAULT_REPORT_LIMIT = 20

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS departments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE,
    risk_score INTEGER DEFAULT 100
);

CREATE TABLE IF NOT EXISTS employees (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    email TEXT UNIQUE,
    dept_id INTEGER,
    security_score INTEGER DEFAULT 100,
    FOREIGN KEY(dept_id) REFERENCES departments(id)
);

CREATE TABLE IF NOT EXISTS simulations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT,
    content TEXT,
    difficulty INTEGER,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS campaigns (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    status TEXT,
    target_dept_id INTEGER,
    sim_type TEXT,
    launched_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(target_dept_id) REFERENCES departments(id)
);

CREATE TABLE IF NOT EXISTS results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    employee_id INTEGER,
    simulation_id INTEGER,
    campaign_id INTEGER,
    is_correct BOOLEAN,
    response_time INTEGER,
    feedback TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(employee_id) REFERENCES employees(id),
    FOREIGN KEY(simulation_id) REFERENCES simulations(id),
    FOREIGN KEY(campaign_id) REFERENCES campaigns(id)
);

CREATE INDEX IF NOT EXISTS idx_results_employee ON results(employee_id);
CREATE INDEX IF NOT EXISTS idx_results_campaign ON results(campaign_id);
CREATE INDEX IF NOT EXISTS idx_employees_dept ON employees(dept_id);
"""

SEED_DEPARTMENTS = ['Engineering', 'Finance', 'Marketing', 'HR', 'Sales']

SEED_EMPLOYEES = [
    {'name': 'Alice Chen', 'email': 'alice@corp.com', 'dept': 'Engineering'},
    {'name': 'Bob Smith', 'email': 'bob@corp.com', 'dept': 'Finance'},
    {'name': 'Charlie Day', 'email': 'charlie@corp.com', 'dept': 'Marketing'},
]

# Seeded departments start with a risk score in [60, 99]
SEED_RISK_RANGE = (60, 99)


class AdminOverview(BaseModel):
    total_sims: int = 0
    total_reports: int = 0
    total_compromises: int = 0


class Department(BaseModel):
    id: int
    name: str
    risk_score: int
    employee_count: int = 0
    avg_score: Optional[float] = None


class Campaign(BaseModel):
    id: int
    name: str
    status: CampaignStatus
    target_dept_id: int
    dept_name: str
    sim_type: str
    launched_at: str
    response_count: int = 0


class EmployeeStats(BaseModel):
    total_simulations: int = 0
    correct_count: int = 0
    avg_response_time: float = 0


class Report(BaseModel):
    """One result row as shown on the employee's report page"""
    id: int
    is_correct: bool
    response_time: int
    feedback: str
    created_at: str
    sim_type: Optional[str] = None


class Simulation(BaseModel):
    id: int
    type: str
    content: Optional[Dict[str, Any]] = None
    difficulty: Optional[int] = None
    created_at: str


class ResultRecord(BaseModel):
    """A stored result together with the employee's updated score"""
    id: int
    employee_id: int
    simulation_id: int
    campaign_id: Optional[int] = None
    is_correct: bool
    response_time: int
    feedback: str
    security_score: int = Field(..., ge=MIN_SECURITY_SCORE, le=MAX_SECURITY_SCORE)
