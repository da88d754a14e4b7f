from __future__ import annotations


class Balance:
    # Identity of the simulated machine
    USER = "user"
    HOSTNAME = "hackeros"
    HOME = "/home/user"
    OS_NAME = "HackerOS"
    OS_VERSION = "1.0"
    KERNEL = "5.15.0-hackeros"

    # Privilege prompt
    SUDO_PASSWORD = "admin"
    MAX_PASSWORD_ATTEMPTS = 3

    # Shell
    HISTORY_MAX = 1000
    ALIAS_MAX_DEPTH = 10
    MAX_PACKET_COUNT = 100
    DEFAULT_ENV = {
        "PATH": "/bin:/usr/bin:/usr/local/bin",
        "HOME": HOME,
        "USER": USER,
        "TERM": "xterm-256color",
        "SHELL": "/bin/bash",
        "EDITOR": "nano",
        "HOSTNAME": HOSTNAME,
    }
    DEFAULT_ALIASES = {
        "ll": "ls -l",
        "la": "ls -a",
        "l": "ls",
        "..": "cd ..",
        "c": "clear",
    }

    # Filesystem
    DEFAULT_DIR_PERMS = "rwxr-xr-x"
    DEFAULT_FILE_PERMS = "rw-r--r--"
    DIR_SIZE = 4096
    EXECUTABLE_SUFFIXES = (".sh", ".bin")

    # Progression
    # Cumulative XP needed to reach level i+1.
    LEVEL_XP = [
        0, 100, 250, 450, 700, 1000, 1400, 1900, 2500, 3200,
        4000, 5000, 6200, 7600, 9200, 11000, 13000, 15500, 18500, 22000,
    ]
    RANKS = [
        (0, "Script Kiddie"),
        (500, "Apprentice Hacker"),
        (1000, "Ethical Hacker"),
        (2000, "Penetration Tester"),
        (3500, "Security Specialist"),
        (5000, "Cyber Warrior"),
        (7500, "Elite Hacker"),
        (10000, "Security Architect"),
        (15000, "Cyber Guardian"),
        (25000, "Hacking Legend"),
    ]
    ELO_PER_XP = 2
    DEFAULT_SKILLS = {
        "brute_force": 1,
        "penetration_testing": 1,
        "social_engineering": 1,
        "cryptography": 1,
        "network_security": 1,
    }
    MAX_RECENT_EVENTS = 50

    # Persistence
    SAVE_DIR = "~/.hackeros"
    SAVE_FILE = "save.json"
    LOG_FILE = "hackeros.log"
