# models_normalized.py

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from db import Base  # <-- use the existing Base from db.py


class Manager(Base):
    """
    A person, stable across seasons via the provider's manager guid.
    """
    __tablename__ = "managers"

    id = Column(Integer, primary_key=True)
    guid = Column(String, nullable=False)
    nickname = Column(String, nullable=False)
    image_url = Column(String)

    __table_args__ = (
        UniqueConstraint("guid", name="uq_managers_guid"),
    )

    # relationships
    teams = relationship("Team", back_populates="manager")


class League(Base):
    """
    One season's instance of a league, keyed by "<game_key>.l.<league_id>".
    """
    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True)
    league_key = Column(String, nullable=False)   # e.g. "449.l.730730"
    league_id = Column(String, nullable=False)    # e.g. "730730"
    game_key = Column(String, nullable=False)     # e.g. "449"
    name = Column(String, nullable=False)
    season = Column(String, nullable=False)       # e.g. "2024"
    num_teams = Column(Integer, nullable=False, default=0)
    current_week = Column(Integer)
    start_week = Column(Integer)
    end_week = Column(Integer)
    is_finished = Column(Boolean, default=False)
    logo_url = Column(String)
    url = Column(String)

    __table_args__ = (
        UniqueConstraint("league_key", name="uq_leagues_league_key"),
    )

    # relationships
    teams = relationship("Team", back_populates="league")


class Team(Base):
    """
    A manager's entry in one league-season, with the season-to-date record.
    """
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True)
    team_key = Column(String, nullable=False)     # e.g. "449.l.730730.t.1"
    team_id = Column(String, nullable=False)      # e.g. "1"
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    manager_id = Column(Integer, ForeignKey("managers.id"), nullable=False)
    name = Column(String, nullable=False)
    logo_url = Column(String)
    url = Column(String)

    # standings
    wins = Column(Integer, nullable=False, default=0)
    losses = Column(Integer, nullable=False, default=0)
    ties = Column(Integer, nullable=False, default=0)
    win_pct = Column(Float, nullable=False, default=0.0)
    points_for = Column(Float, nullable=False, default=0.0)
    points_against = Column(Float, nullable=False, default=0.0)
    rank = Column(Integer)
    playoff_seed = Column(Integer)
    is_playoff_team = Column(Boolean, default=False)

    __table_args__ = (
        UniqueConstraint("team_key", name="uq_teams_team_key"),
        UniqueConstraint("league_id", "manager_id", name="uq_teams_league_manager"),
    )

    # relationships
    league = relationship("League", back_populates="teams")
    manager = relationship("Manager", back_populates="teams")


class Matchup(Base):
    __tablename__ = "matchups"

    id = Column(Integer, primary_key=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    week = Column(Integer, nullable=False)

    # provider order is stable, so (team1, team2) is part of the natural key
    team1_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    team2_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    team1_points = Column(Float, nullable=True)
    team2_points = Column(Float, nullable=True)
    winner_id = Column(Integer, ForeignKey("teams.id"), nullable=True)

    is_playoff = Column(Boolean, default=False)
    is_tie = Column(Boolean, default=False)

    __table_args__ = (
        UniqueConstraint(
            "league_id",
            "week",
            "team1_id",
            "team2_id",
            name="uq_matchups_league_week_teams",
        ),
    )

    league = relationship("League")
    team1 = relationship("Team", foreign_keys=[team1_id])
    team2 = relationship("Team", foreign_keys=[team2_id])
    winner = relationship("Team", foreign_keys=[winner_id])
