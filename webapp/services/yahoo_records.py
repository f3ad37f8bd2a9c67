# webapp/services/yahoo_records.py

"""
Flat records produced by `yahoo_parse`. Nothing past the parser sees
Yahoo's raw nested JSON.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class LeagueRecord:
    league_key: str
    league_id: str
    name: str
    season: str
    game_key: str
    num_teams: int = 0
    current_week: int = 1
    start_week: int = 1
    end_week: Optional[int] = None
    is_finished: bool = False
    draft_status: Optional[str] = None
    scoring_type: Optional[str] = None
    url: Optional[str] = None
    logo_url: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "leagueKey": self.league_key,
            "leagueId": self.league_id,
            "name": self.name,
            "season": self.season,
            "gameKey": self.game_key,
            "numTeams": self.num_teams,
            "currentWeek": self.current_week,
            "startWeek": self.start_week,
            "endWeek": self.end_week,
            "isFinished": self.is_finished,
            "draftStatus": self.draft_status,
            "scoringType": self.scoring_type,
            "url": self.url,
            "logoUrl": self.logo_url,
        }


@dataclass
class TeamStanding:
    team_key: str
    team_id: str
    name: str
    manager_guid: Optional[str] = None
    manager_nickname: Optional[str] = None
    manager_image_url: Optional[str] = None
    url: Optional[str] = None
    logo_url: Optional[str] = None
    wins: int = 0
    losses: int = 0
    ties: int = 0
    win_pct: float = 0.0
    points_for: float = 0.0
    points_against: float = 0.0
    rank: int = 0
    playoff_seed: Optional[int] = None
    is_playoff_team: bool = False

    def to_json(self) -> Dict[str, Any]:
        return {
            "teamKey": self.team_key,
            "teamId": self.team_id,
            "name": self.name,
            "url": self.url,
            "logoUrl": self.logo_url,
            "manager": {
                "guid": self.manager_guid,
                "nickname": self.manager_nickname,
                "imageUrl": self.manager_image_url,
            },
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "winPct": self.win_pct,
            "pointsFor": self.points_for,
            "pointsAgainst": self.points_against,
            "rank": self.rank,
            "playoffSeed": self.playoff_seed,
            "isPlayoffTeam": self.is_playoff_team,
        }


@dataclass
class MatchupRecord:
    week: int
    team1_key: str
    team2_key: str
    team1_points: float = 0.0
    team2_points: float = 0.0
    is_playoff: bool = False
    is_consolation: bool = False
    is_tie: bool = False
    winner_key: Optional[str] = None
    status: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "team1Key": self.team1_key,
            "team2Key": self.team2_key,
            "team1Points": self.team1_points,
            "team2Points": self.team2_points,
            "isPlayoff": self.is_playoff,
            "isConsolation": self.is_consolation,
            "isTie": self.is_tie,
            "winnerKey": self.winner_key,
            "status": self.status,
        }


@dataclass
class RosterPlayer:
    player_key: str
    player_id: str
    full_name: str
    first_name: str = ""
    last_name: str = ""
    team_abbr: Optional[str] = None
    display_position: Optional[str] = None
    selected_position: Optional[str] = None
    status: Optional[str] = None
    injury_note: Optional[str] = None
    image_url: Optional[str] = None
    points: Optional[float] = None
    bye_week: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "playerKey": self.player_key,
            "playerId": self.player_id,
            "name": {
                "full": self.full_name,
                "first": self.first_name,
                "last": self.last_name,
            },
            "teamAbbr": self.team_abbr,
            "displayPosition": self.display_position,
            "selectedPosition": self.selected_position,
            "status": self.status,
            "injuryNote": self.injury_note,
            "imageUrl": self.image_url,
            "points": self.points,
            "byeWeek": self.bye_week,
        }
