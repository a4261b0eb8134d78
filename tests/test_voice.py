import subprocess

from gremind.voice import RecordingAnnouncer, SubprocessVoiceAnnouncer


class FakeProcess:
    def __init__(self, args, running=True, hang=False):
        self.args = args
        self.running = running
        self.hang = hang
        self.terminated = False
        self.killed = False

    def poll(self):
        return None if self.running else 0

    def terminate(self):
        self.terminated = True

    def wait(self, timeout=None):
        if self.hang:
            raise subprocess.TimeoutExpired(cmd="speak", timeout=timeout)
        self.running = False
        return 0

    def kill(self):
        self.killed = True
        self.running = False


class FakePopen:
    def __init__(self, hang=False):
        self.hang = hang
        self.processes = []

    def __call__(self, args):
        proc = FakeProcess(args, hang=self.hang)
        self.processes.append(proc)
        return proc


def test_speak_runs_engine_in_child_interpreter():
    popen = FakePopen()
    voice = SubprocessVoiceAnnouncer(rate=170, python="/usr/bin/python3", popen=popen)
    voice.speak("Turn <b>left</b> onto Main St")

    args = popen.processes[0].args
    assert args[:2] == ["/usr/bin/python3", "-c"]
    assert "pyttsx3" in args[2]
    assert "'Turn left onto Main St'" in args[2]
    assert "170" in args[2]


def test_new_instruction_cancels_previous_utterance():
    popen = FakePopen()
    voice = SubprocessVoiceAnnouncer(popen=popen)
    voice.speak("Head north")
    voice.speak("Turn right")

    first, second = popen.processes
    assert first.terminated is True
    assert second.terminated is False


def test_hung_utterance_is_killed():
    popen = FakePopen(hang=True)
    voice = SubprocessVoiceAnnouncer(popen=popen)
    voice.speak("Head north")
    voice.cancel()
    assert popen.processes[0].killed is True


def test_empty_text_is_not_spoken():
    popen = FakePopen()
    SubprocessVoiceAnnouncer(popen=popen).speak("<div></div>")
    assert popen.processes == []


def test_spawn_failure_is_logged(caplog):
    def _broken(args):
        raise FileNotFoundError("no interpreter")

    voice = SubprocessVoiceAnnouncer(popen=_broken)
    with caplog.at_level("WARNING"):
        voice.speak("Head north")
    assert "Voice announcement failed" in caplog.text


def test_recording_announcer():
    voice = RecordingAnnouncer()
    voice.speak("Continue <b>straight</b>")
    voice.speak("")
    assert voice.spoken == ["Continue straight"]
