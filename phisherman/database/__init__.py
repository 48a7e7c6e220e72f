#!/usr/bin/env python3
"""
Database Module

This module provides SQLite persistence for training activity.
"""

from .sqlite_config import (
    SQLiteConfig,
    SQLiteConnection,
    get_sqlite_connection,
    test_connection
)

from .base_sqlite_service import BaseSQLiteService

from .training_models import (
    CampaignStatus,
    AdminOverview,
    Department,
    Campaign,
    EmployeeStats,
    Report,
    Simulation,
    ResultRecord,
    DEFAULT_EMPLOYEE_ID
)

from .training_data_service import (
    TrainingDataService,
    get_training_data_service
)

__all__ = [
    'SQLiteConfig',
    'SQLiteConnection',
    'get_sqlite_connection',
    'test_connection',
    'BaseSQLiteService',
    'CampaignStatus',
    'AdminOverview',
    'Department',
    'Campaign',
    'EmployeeStats',
    'Report',
    'Simulation',
    'ResultRecord',
    'DEFAULT_EMPLOYEE_ID',
    'TrainingDataService',
    'get_training_data_service'
]
