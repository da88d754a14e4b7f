from __future__ import annotations

from hackeros.bootstrap import create_session
from hackeros.cli.output import ListSink
from hackeros.model.missions import MissionState

CAPTURE = "/tmp/captures/capture_CORP_SECURE.cap"

CAMPAIGN = {
    "first_steps": [
        "pwd",
        "ls",
        "cd documents",
        "cat welcome.txt",
        "cd ~",
    ],
    "file_ops": [
        "mkdir -p projects/notes",
        "echo 'recon the target' > projects/notes/todo.txt",
        "touch projects/notes/scan.sh",
        "chmod +x projects/notes/scan.sh",
        "grep localhost /etc/hosts",
    ],
    "wifi_pentest": [
        "airodump-ng wlan0",
        "aireplay-ng --deauth 5 -a 00:11:22:33:44:55 wlan0",
        f"aircrack-ng {CAPTURE}",
        f"aircrack-ng -w wifi/wordlist.txt {CAPTURE}",
        "echo 'ssid=\"CORP_SECURE\" psk=\"corporate2023\"' > wifi/corp.conf",
        "wpa_supplicant -i wlan0 -c wifi/corp.conf",
        "nmap -sn 192.168.10.0/24",
        "echo 'WPA key: corporate2023' > ~/report.txt",
    ],
}


def assert_no_errors(out, line: str) -> None:
    bad = [o.text for o in out if o.is_error]
    assert not bad, f"'{line}' failed: {bad}"


def main() -> None:
    sink = ListSink()
    session = create_session(sink=sink)
    store = session.missions

    # 1) Fresh game: only the first mission is open
    assert store.get("first_steps").state == MissionState.AVAILABLE
    assert store.get("file_ops").state == MissionState.LOCKED
    assert store.progress.level == 1

    # 2) Play every mission in order; each one unlocks the next
    for mission_id, lines in CAMPAIGN.items():
        out = session.submit_line(f"mission start {mission_id}")
        assert_no_errors(out, f"mission start {mission_id}")
        for line in lines:
            assert_no_errors(session.submit_line(line), line)
        mission = store.get(mission_id)
        pending = [o.id for o in mission.objectives if not o.completed]
        assert mission.state == MissionState.COMPLETED, f"{mission_id} still open: {pending}"
        assert store.active_mission_id is None

    # 3) Rewards add up: 100 + 250 + 500 XP
    p = store.progress
    assert p.xp == 850, p.xp
    assert p.level == 5, p.level
    assert p.completed_missions == set(CAMPAIGN)
    assert p.inventory == ["Terminal Basics Badge", "USB Rubber Ducky", "WiFi Pineapple"]
    assert "Mission complete: Corporate WiFi Audit" in sink.text

    # 4) Replaying a finished mission is refused and grants nothing
    out = session.submit_line("mission start first_steps")
    assert any("already completed" in o.text for o in out)
    session.submit_line("pwd")
    assert store.progress.xp == 850

    print("SMOKE TEST PASSED")


def test_smoke() -> None:
    main()


if __name__ == "__main__":
    main()
