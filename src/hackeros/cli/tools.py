"""Simulated wireless-audit toolkit.

Every tool prints canned output for the CORP_SECURE scenario in one step; nothing here
touches a real interface or network.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from hackeros.cli.parser import CommandLine, UsageError
from hackeros.config.balance import Balance

if TYPE_CHECKING:
    from hackeros.cli.session import SessionInterpreter

TARGET_SSID = "CORP_SECURE"
TARGET_BSSID = "00:11:22:33:44:55"
TARGET_KEY = "corporate2023"
INTERFACE = "wlan0"
CAPTURE_DIR = "/tmp/captures"
CAPTURE_FILE = f"{CAPTURE_DIR}/capture_{TARGET_SSID}.cap"
CAPTURE_CONTENT = f"WPA Handshake Capture File - {TARGET_SSID}"
SCAN_SUBNET = "192.168.10.0/24"

_AIRODUMP_LINES = [
    "CH  6 ][ Elapsed: 12 s ][ 2023-03-22 11:24",
    " BSSID              PWR  Beacons  #Data  CH   MB   ENC CIPHER  AUTH  ESSID",
    " 00:11:22:33:44:55  -42      103    346   6   54e  WPA2 CCMP   PSK   CORP_SECURE",
    " 00:11:22:33:44:66  -57       87    124   1   54e  OPN              Guest_WiFi",
    " 00:11:22:33:44:77  -61       56     73  11   54e  WPA2 CCMP   PSK   HomeNetwork",
    " 00:11:22:33:44:88  -72       42     12   3   54e  WEP  WEP         IoT_Network",
    "",
    " BSSID              STATION            PWR   Rate    Lost  Frames  Notes  Probes",
    " 00:11:22:33:44:55  66:77:88:99:AA:BB  -31   54-54      0     124",
    " 00:11:22:33:44:55  66:77:88:99:AA:CC  -42   54-54      0      87",
    " 00:11:22:33:44:55  66:77:88:99:AA:DD  -38   54-54      2      62",
]

_NMAP_HOSTS = [
    ("192.168.10.1", "0.0034", "00:DE:AD:BE:EF:01", "Router"),
    ("192.168.10.5", "0.0058", "00:DE:AD:BE:EF:05", "File Server"),
    ("192.168.10.10", "0.0043", "00:DE:AD:BE:EF:10", "Web Server"),
    ("192.168.10.15", "0.0067", "00:DE:AD:BE:EF:15", "Database Server"),
    ("192.168.10.20", "0.0052", "00:DE:AD:BE:EF:20", "Print Server"),
]

TOOL_HELP: dict[str, tuple[str, str]] = {
    "airodump-ng": ("airodump-ng <interface>", "Scan for wireless networks"),
    "aireplay-ng": ("aireplay-ng --deauth <count> -a <bssid> <interface>", "Deauthenticate clients to capture a handshake"),
    "aircrack-ng": ("aircrack-ng [-w <wordlist>] <capture file>", "Analyze a capture or crack its key"),
    "wpa_supplicant": ("wpa_supplicant -i <interface> -c <config>", "Connect to a WPA network"),
    "nmap": ("nmap -sn <target>", "Discover hosts on a network"),
    "ssh": ("ssh [user@]host", "Open a secure shell (not available)"),
}


def _lines(session: SessionInterpreter, lines: list[str]) -> None:
    for line in lines:
        session.out(line)


def airodump(session: SessionInterpreter, cmd: CommandLine) -> None:
    if not cmd.args:
        raise UsageError(f"usage: {TOOL_HELP['airodump-ng'][0]}")
    iface = cmd.args[0].lower()
    if iface != INTERFACE:
        raise UsageError(f"Interface {iface} not found.")
    session.out(f"Starting airodump-ng on {INTERFACE}...")
    session.out("Scanning for wireless networks...")
    _lines(session, _AIRODUMP_LINES)


def aireplay(session: SessionInterpreter, cmd: CommandLine) -> None:
    usage = f"usage: {TOOL_HELP['aireplay-ng'][0]}"
    args = cmd.args
    if len(args) < 5 or args[0].lower() != "--deauth" or args[2].lower() != "-a":
        raise UsageError(usage)
    count, bssid, iface = args[1], args[3], args[4].lower()
    if iface != INTERFACE:
        raise UsageError(f"Interface {iface} not found.")
    if bssid != TARGET_BSSID:
        raise UsageError(f"Unable to find target AP with BSSID {bssid}")
    try:
        packets = int(count)
    except ValueError:
        packets = 0
    if packets <= 0:
        raise UsageError("Deauth count must be a positive number")
    if packets > Balance.MAX_PACKET_COUNT:
        raise UsageError(f"Deauth count must be at most {Balance.MAX_PACKET_COUNT}")

    session.out(f"Sending deauthentication packets to BSSID [{bssid}]...")
    session.out(f"Waiting for beacon frame from {TARGET_SSID}...")
    session.out(f'Found BSSID "{bssid}" ({TARGET_SSID})')
    session.out(f"Sending DeAuth to broadcast -- BSSID: [{bssid}]")
    for i in range(1, packets + 1):
        session.out(f"Sending packet {i}/{packets}")
    session.out("Captured handshake from client 66:77:88:99:AA:BB")
    session.out(f"Capture saved to: {CAPTURE_FILE}")
    fs = session.fs
    fs.create_directory(CAPTURE_DIR, recursive=True)
    if not fs.is_file(CAPTURE_FILE):
        fs.create_file(CAPTURE_FILE, CAPTURE_CONTENT)


def aircrack(session: SessionInterpreter, cmd: CommandLine) -> None:
    args = cmd.args
    if not args:
        raise UsageError(f"usage: {TOOL_HELP['aircrack-ng'][0]}")
    fs = session.fs
    if args[0] != "-w":
        capture = args[0]
        if not fs.is_file(capture):
            raise UsageError(f"Capture file not found: {capture}")
        session.out(f"Opening {capture}...")
        session.out("Reading packets, please wait...")
        _lines(session, [
            "",
            "                                 Aircrack-ng 1.6",
            "",
            "      [00:00:01] Tested 1 keys (got 1 IVs)",
            "",
            f' 1. ESSID: "{TARGET_SSID}"',
            f"    Network BSSID: {TARGET_BSSID}",
            f"    WPA handshake: {TARGET_SSID}",
            f"    File: {fs.resolve(capture)}",
            "",
            "Packet capture succeeded:",
            f"  WPA handshake: {TARGET_BSSID}",
            "",
            "Ready to crack. Use `-w wordlist.txt` option to start cracking.",
        ])
        return

    if len(args) < 3:
        raise UsageError("usage: aircrack-ng -w <wordlist> <capture file>")
    wordlist, capture = args[1], args[2]
    if not fs.is_file(capture):
        raise UsageError(f"Capture file not found: {capture}")
    if not fs.is_file(wordlist):
        raise UsageError(f"Wordlist file not found: {wordlist}")
    words = [w.strip() for w in fs.read_file(wordlist).split("\n") if w.strip()]
    session.out(f"Opening {capture}...")
    session.out("Reading packets, please wait...")
    for i, word in enumerate(words, start=1):
        session.out(f"Aircrack-ng 1.6  [00:00:{i:02d}] {i} keys tested ({i * 100}.00 k/s)")
        if word == TARGET_KEY:
            break
    if TARGET_KEY not in words or TARGET_SSID not in fs.read_file(capture):
        session.out("")
        session.out("                               KEY NOT FOUND")
        return
    _lines(session, [
        "",
        f"                               KEY FOUND! [ {TARGET_KEY} ]",
        "",
        "      Master Key     : E4:F2:BD:7A:32:F3:26:AB:DF:C3:8B:9E:A9:4F:05:E1",
        "                      6C:C4:A9:FF:58:3D:C2:7C:59:BE:72:FE:39:00:FC:31",
        "",
        "      Transient Key  : 25:BF:8D:34:A7:12:EB:0D:B3:C1:97:A6:F2:4E:1D:6F",
        "                      A2:5B:7C:09:F1:D8:AE:3C:19:FB:AB:0E:57:29:1D:C4",
        "",
        "      EAPOL HMAC     : 73:89:E6:78:C5:DF:26:11:A3:09:4C:DD:F5:BF:63:87",
    ])


def wpa_supplicant(session: SessionInterpreter, cmd: CommandLine) -> None:
    args = cmd.args
    if "-i" not in args or "-c" not in args:
        raise UsageError(f"usage: {TOOL_HELP['wpa_supplicant'][0]}")
    config = " ".join(args)
    conf_index = args.index("-c") + 1
    # a -c operand that is not a file is taken as inline configuration
    if conf_index < len(args) and session.fs.is_file(args[conf_index]):
        config += "\n" + session.fs.read_file(args[conf_index])
    if TARGET_SSID not in config or TARGET_KEY not in config:
        raise UsageError("Invalid configuration parameters")
    _lines(session, [
        f"Connecting to {TARGET_SSID} using wpa_supplicant...",
        "Successfully initialized wpa_supplicant",
        f"{INTERFACE}: Trying to associate with {TARGET_BSSID} (SSID='{TARGET_SSID}')",
        f"{INTERFACE}: Associated with {TARGET_BSSID}",
        f"{INTERFACE}: WPA: Key negotiation completed with {TARGET_BSSID}",
        f"{INTERFACE}: CTRL-EVENT-CONNECTED - Connection to {TARGET_BSSID} completed",
        f"Successfully connected to {TARGET_SSID}",
    ])


def nmap(session: SessionInterpreter, cmd: CommandLine) -> None:
    if len(cmd.args) < 2:
        raise UsageError("usage: nmap [-sn|-sV|-p] <target>")
    scan, target = cmd.args[0].lower(), cmd.args[1]
    if scan != "-sn":
        raise UsageError(f"Unsupported scan type: {scan}. Try -sn for ping scan.")
    if target != SCAN_SUBNET:
        session.out(f"Scanning {target}...")
        session.out(f"Nmap scan report for {target}")
        session.out("All 1000 scanned ports are filtered")
        return
    session.out(f"Starting Nmap 7.92 ( https://nmap.org ) at {session.clock().strftime('%H:%M:%S')}")
    session.out(f"Scanning {SCAN_SUBNET} [2 ports]")
    for address, latency, mac, role in _NMAP_HOSTS:
        session.out(f"Nmap scan report for {address}")
        session.out(f"Host is up ({latency}s latency).")
        session.out(f"MAC Address: {mac} ({role})")
        session.out("")
    session.out(f"Nmap done: 256 IP addresses ({len(_NMAP_HOSTS)} hosts up) scanned in 5.23 seconds")


def ssh(session: SessionInterpreter, cmd: CommandLine) -> None:
    session.err("ssh: connection attempts are not available in this environment")


TOOLS: dict[str, Callable[[SessionInterpreter, CommandLine], None]] = {
    "airodump-ng": airodump,
    "aireplay-ng": aireplay,
    "aircrack-ng": aircrack,
    "wpa_supplicant": wpa_supplicant,
    "nmap": nmap,
    "ssh": ssh,
}
