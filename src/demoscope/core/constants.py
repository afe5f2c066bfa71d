"""
DemoScope - Constants

Team/class enumerations, message categories and the reserved numeric codes
the game writes into its replay events.
"""

from enum import Enum, IntEnum, StrEnum

# Source engine default for TF2 servers (interval_per_tick = 0.015)
DEFAULT_TICK_RATE = 66.667

# Persistent identifier the game assigns to every bot
BOT_STEAM_ID = "BOT"

# Base of the 64-bit Steam ID space for individual accounts
STEAMID64_BASE = 76561197960265728

# Slot value the game uses for world/self kills
WORLD_ATTACKER = 0

# Assister slot values at or above this mean "no assister" (the game sends -1 as u16)
NO_ASSISTER_THRESHOLD = 16 * 1024

# teamplay_round_win reason for a stalemate on time limit expiry
WIN_REASON_TIME_LIMIT = 6

# Affirmative / negative option labels of a kick vote
VOTE_OPTION_YES = "Yes"
VOTE_OPTION_NO = "No"

# Name of the string table carrying the player directory
USERINFO_TABLE = "userinfo"


class DeathFlags(IntEnum):
    """Bit masks of player_death.death_flags."""

    DOMINATION = 0x0001
    ASSISTER_DOMINATION = 0x0002
    REVENGE = 0x0004
    ASSISTER_REVENGE = 0x0008
    FEIGN_DEATH = 0x0020


class Team(int, Enum):
    """TF2 team numbers."""

    OTHER = 0
    SPECTATOR = 1
    RED = 2
    BLUE = 3

    @classmethod
    def new(cls, value: int) -> "Team":
        """Map a raw team number, folding unknown values into OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER

    def __str__(self) -> str:
        return {
            Team.OTHER: "Other",
            Team.SPECTATOR: "Spectator",
            Team.RED: "RED",
            Team.BLUE: "BLU",
        }[self]


class PlayerClass(int, Enum):
    """TF2 player classes, numbered the way the game sends them."""

    OTHER = 0
    SCOUT = 1
    SNIPER = 2
    SOLDIER = 3
    DEMOMAN = 4
    MEDIC = 5
    HEAVY = 6
    PYRO = 7
    SPY = 8
    ENGINEER = 9

    @classmethod
    def new(cls, value: int) -> "PlayerClass":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER

    def __str__(self) -> str:
        return self.name.capitalize()


class ChatMessageKind(StrEnum):
    """SayText2 variants, keyed by the localization template the game sends."""

    ALL = "TF_Chat_All"
    TEAM = "TF_Chat_Team"
    ALL_DEAD = "TF_Chat_AllDead"
    TEAM_DEAD = "TF_Chat_TeamDead"
    ALL_SPEC = "TF_Chat_AllSpec"
    NAME_CHANGE = "TF_Name_Change"
    EMPTY = ""

    @classmethod
    def from_template(cls, template: str) -> "ChatMessageKind":
        """Classify a raw SayText2 template such as '#TF_Chat_Team'."""
        key = template.lstrip("#")
        for kind in cls:
            if kind.value and kind.value == key:
                return kind
        return cls.EMPTY

    @property
    def prefix(self) -> str:
        """Prefix shown before the speaker's name."""
        return {
            ChatMessageKind.TEAM: "(Team) ",
            ChatMessageKind.ALL_DEAD: "*DEAD* ",
            ChatMessageKind.TEAM_DEAD: "(Team) *DEAD* ",
            ChatMessageKind.ALL_SPEC: "*SPEC* ",
            ChatMessageKind.NAME_CHANGE: "[Name Change] ",
        }.get(self, "")


class HudTextLocation(int, Enum):
    """Destination of a server TextMsg."""

    PRINT_NOTIFY = 1
    PRINT_CONSOLE = 2
    PRINT_TALK = 3
    PRINT_CENTER = 4


class MessageType(StrEnum):
    """Categories of decoded records."""

    NET_TICK = "net_tick"
    SERVER_INFO = "server_info"
    GAME_EVENT = "game_event"
    USER_MESSAGE = "user_message"
    STRING_TABLE = "string_table"
    PACKET_ENTITIES = "packet_entities"
    VOICE_DATA = "voice_data"
    SOUNDS = "sounds"
    CONSOLE_COMMAND = "console_command"
    OTHER = "other"


class CritCode(IntEnum):
    """Raw player_death.crit_type values."""

    NONE = 0
    MINI = 1
    FULL = 2
