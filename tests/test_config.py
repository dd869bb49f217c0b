from hoa_portal.config import Settings


def test_cors_origins_include_frontend_url_once():
    settings = Settings(
        cors_origins=["http://localhost:3000/"],
        frontend_url="https://portal.example.com/",
    )

    assert settings.cors_allow_origins == ["http://localhost:3000", "https://portal.example.com"]


def test_frontend_url_already_listed_is_not_repeated():
    settings = Settings(cors_origins=["http://localhost:5173"], frontend_url="http://localhost:5173")

    assert settings.cors_allow_origins == ["http://localhost:5173"]
