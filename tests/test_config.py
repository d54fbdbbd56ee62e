"""Tests for scan configuration."""

import pytest
from tipscan.config import DEFAULT_PROFILES, OCR_MODES, PreprocessProfile, ScanConfig


class TestPreprocessProfile:
    """Test suite for brightness-dependent settings."""

    def setup_method(self):
        self.profile = DEFAULT_PROFILES['normal']

    @pytest.mark.parametrize("brightness,factor", [(40, 2.0), (99, 2.0), (100, 1.5), (180, 1.5), (181, 1.2)])
    def test_factor_bands(self, brightness, factor):
        assert self.profile.factor_for(brightness) == factor

    @pytest.mark.parametrize("brightness,threshold", [(79, 100), (80, 128), (200, 128), (201, 140)])
    def test_threshold_bands(self, brightness, threshold):
        assert self.profile.threshold_for(brightness) == threshold


class TestScanConfig:
    """Test suite for ScanConfig."""

    def test_defaults(self):
        config = ScanConfig()

        assert config.accept_confidence == 0.75
        assert config.modes == OCR_MODES
        assert config.profile_for('low-contrast') == DEFAULT_PROFILES['low-contrast']

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            ScanConfig().profile_for('sepia')

    def test_load_yaml(self, tmp_path):
        """Test loading overrides from YAML while keeping other defaults."""
        path = tmp_path / "scan.yml"
        path.write_text(
            "accept_confidence: 0.8\n"
            "modes: [normal, high-contrast]\n"
            "profiles:\n"
            "  high-contrast:\n"
            "    factors: [3.0, 2.0, 2.5]\n"
            "    thresholds: [80, 160, 120]\n",
            encoding="utf-8",
        )

        config = ScanConfig.load(path)

        assert config.accept_confidence == 0.8
        assert config.modes == ('normal', 'high-contrast')
        assert config.language == 'eng'
        assert config.profile_for('high-contrast') == PreprocessProfile(
            factors=(3.0, 2.0, 2.5), thresholds=(80.0, 160.0, 120.0)
        )
        assert config.profile_for('normal') == DEFAULT_PROFILES['normal']

    def test_empty_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "scan.yml"
        path.write_text("", encoding="utf-8")

        assert ScanConfig.load(path) == ScanConfig()

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            ScanConfig.from_dict({'acept_confidence': 0.8})

    @pytest.mark.parametrize("raw", [
        {'accept_confidence': 0},
        {'accept_confidence': 1.5},
        {'max_width': 0},
        {'modes': []},
        {'modes': ['normal', 'sepia']},
        {'profiles': {'normal': {'factors': [1.0, 2.0]}}},
        {'profiles': {'normal': {'factors': [1.0, 2.0], 'thresholds': [1, 2]}}},
    ])
    def test_invalid_values_rejected(self, raw):
        with pytest.raises(ValueError):
            ScanConfig.from_dict(raw)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ScanConfig.load(tmp_path / "missing.yml")
