"""
Chat Text Resolution

Turns a raw chat or server message into display text: known server
localization keys are replaced by an English template, then the %s1..%s3
placeholders are filled from the message parameters.
"""

SERVER_MESSAGE_TEMPLATES: dict[str, str] = {
    "#TF_Name_Change": "* %s1 changed name to %s2",
    "#game_player_joined_game": "%s1 has joined the game",
    "#game_player_left_game": "%s1 left the game (%s2)",
    "#game_player_joined_team": "%s1 joined team %s2",
    "#game_player_was_team_balanced": "%s1 was moved to the other team for game balance",
    "#game_server_cvar_changed": "Server cvar '%s1' changed to %s2",
    "#TF_vote_passed_kick_player": 'Kick player "%s1"?',
}

MAX_SUBSTITUTIONS = 3


def is_known_template(raw: str) -> bool:
    return raw in SERVER_MESSAGE_TEMPLATES


def resolve_chat_text(raw: str, substitutions: list[str] | tuple[str, ...] = ()) -> str:
    """
    Resolve a message template to display text.

    Placeholders are filled in order and substitution stops at the first
    placeholder the text doesn't contain.

    Args:
        raw: Localization key or literal text
        substitutions: Up to three parameter strings for %s1, %s2, %s3

    Returns:
        Display text
    """
    text = SERVER_MESSAGE_TEMPLATES.get(raw, raw)
    for i, value in enumerate(substitutions[:MAX_SUBSTITUTIONS], start=1):
        placeholder = f"%s{i}"
        if placeholder not in text:
            break
        text = text.replace(placeholder, value)
    return text
