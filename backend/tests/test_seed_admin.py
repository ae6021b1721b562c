import pytest

from scripts import seed_admin as seed_module


def test_seed_admin_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SEED_ADMIN_EMAIL", "SEED_ADMIN_PHONE", "SEED_ADMIN_PASSWORD"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(SystemExit):
        seed_module.main()
