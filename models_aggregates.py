# models_aggregates.py
from __future__ import annotations

from datetime import datetime
from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, UniqueConstraint, Index
from db import Base


class Ranking(Base):
    """
    All-time totals per manager, rebuilt wholesale by the aggregation job.
    Nothing else writes to this table.
    """
    __tablename__ = "rankings"

    id = Column(Integer, primary_key=True)
    manager_id = Column(Integer, ForeignKey("managers.id"), nullable=False)

    total_wins = Column(Integer, nullable=False, default=0)
    total_losses = Column(Integer, nullable=False, default=0)
    total_ties = Column(Integer, nullable=False, default=0)
    win_pct = Column(Float, nullable=False, default=0.0)
    total_points_for = Column(Float, nullable=False, default=0.0)
    total_points_against = Column(Float, nullable=False, default=0.0)
    point_diff = Column(Float, nullable=False, default=0.0)
    seasons_played = Column(Integer, nullable=False, default=0)
    championships = Column(Integer, nullable=False, default=0)
    playoff_appearances = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("manager_id", name="uq_rankings_manager"),
    )


class WeeklyRanking(Base):
    """
    Cumulative standings snapshot for one manager as of one week.
    Drives the rank-over-time chart.
    """
    __tablename__ = "weekly_rankings"

    id = Column(Integer, primary_key=True)

    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    manager_id = Column(Integer, ForeignKey("managers.id"), nullable=False)
    week = Column(Integer, nullable=False)

    # 1 = best
    rank = Column(Integer, nullable=False)

    wins = Column(Integer, nullable=False, default=0)
    losses = Column(Integer, nullable=False, default=0)
    ties = Column(Integer, nullable=False, default=0)
    win_pct = Column(Float, nullable=False, default=0.0)
    points_for = Column(Float, nullable=False, default=0.0)
    points_against = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("league_id", "manager_id", "week", name="uq_weekly_rankings_league_manager_week"),
        Index("ix_weekly_rankings_lookup", "league_id", "week"),
    )
