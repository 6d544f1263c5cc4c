"""
Naming service: lobby codes, player ids and host secrets

Pure generation logic, uniqueness against storage is checked by the caller
"""
import random
import uuid

# no 0/O, 1/I/L: codes are read aloud and typed on phones
LOBBY_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
LOBBY_CODE_LENGTH = 5


def generate_lobby_code() -> str:
    """
    Generate a random 5-character lobby code

    Examples: K7QMD, XH2PA

    Notes:
    - uniqueness is NOT checked (see core.lobby_store.find_unused_code)
    - 31^5 = 28,629,151 possible codes
    """
    return ''.join(random.choices(LOBBY_CODE_ALPHABET, k=LOBBY_CODE_LENGTH))


def normalize_lobby_code(code: str) -> str:
    """Codes are case-insensitive; storage always uses upper case"""
    return (code or "").strip().upper()


def generate_player_id() -> str:
    return str(uuid.uuid4())


def generate_host_secret() -> str:
    """
    Generate the 4-digit secret that lets a host reclaim the lobby on rejoin

    Returns:
        numeric string between "1000" and "9999"
    """
    return str(random.randint(1000, 9999))
