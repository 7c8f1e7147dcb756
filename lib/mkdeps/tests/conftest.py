import pytest
from mkdeps import config

@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path

@pytest.fixture
def write(workdir):
    '''Create a file relative to the working directory.'''
    def write(name, text=""):
        path = workdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return name
    return write

@pytest.fixture
def make_cfg(workdir):
    def make_cfg(**kwargs):
        kwargs.setdefault("cwd", str(workdir))
        return config.make_config(**kwargs)
    return make_cfg
