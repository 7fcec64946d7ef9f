import importlib.util
import json
import os

SCRIPT = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "scripts", "import_users_json.py")


def load_script():
    spec = importlib.util.spec_from_file_location("import_users_json", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_import_users_from_legacy_json(tmp_path, user_store):
    mod = load_script()
    legacy = [
        {
            "telegram_id": 7003416998,
            "username": "ada",
            "first_name": "Ada",
            "phone": "08000000000",
            "verified": True,
            "verified_at": "2025-10-01T10:00:00.000Z",
            "balance": 240,
            "total_kg": 2,
            "rank": "Newbie",
        },
        {"id": 55, "name": "Bola", "verified": True},
        {"username": "nobody"},
    ]
    path = tmp_path / "users.json"
    path.write_text(json.dumps(legacy))

    assert mod.import_users(str(path), user_store) == 2

    ada = user_store.get("7003416998")
    assert ada.phone == "+2348000000000"
    assert ada.verified is True
    assert ada.verified_at.year == 2025
    assert ada.profile["balance"] == 240

    bola = user_store.get("55")
    # verified without a phone is not carried over
    assert bola.verified is False
    assert bola.profile["first_name"] == "Bola"


def test_import_is_repeatable(tmp_path, user_store):
    mod = load_script()
    path = tmp_path / "users.json"
    path.write_text(json.dumps([{"telegram_id": 1, "phone": "+2348000000000"}]))
    mod.import_users(str(path), user_store)
    mod.import_users(str(path), user_store)
    assert len(user_store.list()) == 1
