#!/usr/bin/env python3
"""
Tests for the command line entry point, configuration and logging setup.
"""

import logging
import stat
from unittest.mock import Mock, patch

import pytest
from rich.logging import RichHandler

from phrasecoach import cli, config
from phrasecoach.db import ExpressionRepository
from phrasecoach.logger import setup_logging, NOISY_LOGGERS
from phrasecoach.tutoring import SelectionPolicy, StaticScenarioGenerator, LLMScenarioGenerator


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Isolated config directory with no provider keys"""
    monkeypatch.setenv('PHRASECOACH_HOME', str(tmp_path))
    for var in ('ANTHROPIC_API_KEY', 'OPENAI_API_KEY', 'GOOGLE_API_KEY'):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(cli, 'setup_logging', Mock())
    return tmp_path


class TestConfig:
    """Tests for config helpers"""

    def test_defaults(self, home):
        assert config.get_config_value('selection_policy') == 'first'
        assert config.get_config_value('missing', 'x') == 'x'
        assert config.get_db_path() == str(home / 'phrasecoach.db')

    def test_set_and_load(self, home):
        config.set_config_value('selection_policy', 'random')

        assert config.load_config() == {'selection_policy': 'random'}
        assert config.get_config_value('selection_policy') == 'random'

    def test_config_file_private(self, home):
        config.save_config({'openai_api_key': 'sk-test'})
        mode = stat.S_IMODE(config.get_config_path().stat().st_mode)
        assert mode == 0o600

    def test_corrupt_config(self, home):
        config.get_config_path().write_text("{not json")
        assert config.load_config() == {}

    def test_custom_db_path(self, home):
        config.set_config_value('db_path', str(home / 'other.db'))
        assert config.get_db_path() == str(home / 'other.db')


class TestLogging:
    """Tests for setup_logging"""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_single_rich_handler(self):
        setup_logging('debug')
        setup_logging('debug')

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], RichHandler)

    def test_noisy_loggers_quieted(self):
        setup_logging(logging.DEBUG)
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_unknown_level(self):
        setup_logging('chatty')
        assert logging.getLogger().level == logging.WARNING


class TestBuildEngine:
    """Tests for engine wiring"""

    def test_offline_engine(self, home):
        repo = ExpressionRepository(':memory:')
        engine = cli.build_engine(repo)

        assert isinstance(engine.scenario_generator, StaticScenarioGenerator)
        assert engine.selection == SelectionPolicy.FIRST
        assert engine.repository is repo
        repo.close()

    def test_random_selection(self, home):
        repo = ExpressionRepository(':memory:')
        engine = cli.build_engine(repo, selection='random', seed=3)
        assert engine.selection == SelectionPolicy.RANDOM
        repo.close()

    def test_selection_from_config(self, home):
        config.set_config_value('selection_policy', 'random')
        repo = ExpressionRepository(':memory:')
        assert cli.build_engine(repo).selection == SelectionPolicy.RANDOM
        repo.close()

    def test_llm_engine(self, home):
        llm = Mock()
        llm.is_available.return_value = True
        repo = ExpressionRepository(':memory:')

        with patch.object(cli, 'get_preferred_provider', return_value='anthropic'), \
                patch.object(cli, 'UnifiedLLMClient', return_value=llm):
            engine = cli.build_engine(repo)

        assert isinstance(engine.scenario_generator, LLMScenarioGenerator)
        repo.close()


class TestMain:
    """Tests for the argparse entry point"""

    def test_add_and_list(self, home, capsys):
        assert cli.main(['--add', 'Could you repeat that?']) == 0
        assert cli.main(['--list']) == 0

        out = capsys.readouterr().out
        assert 'Could you repeat that?' in out

    def test_add_empty(self, home):
        assert cli.main(['--add', '   ']) == 1

    def test_list_seeds_defaults(self, home, capsys):
        assert cli.main(['--list']) == 0
        assert 'Nice to meet you' in capsys.readouterr().out

    def test_delete(self, home):
        cli.main(['--add', 'Bye now'])
        assert cli.main(['--delete', '1']) == 0
        assert cli.main(['--delete', '1']) == 1

    def test_stats(self, home, capsys):
        assert cli.main(['--stats']) == 0
        out = capsys.readouterr().out
        assert 'Sessions:' in out
        assert 'never' in out

    def test_verbose_enables_debug(self, home):
        cli.main(['--verbose', '--stats'])
        cli.setup_logging.assert_called_once_with(logging.DEBUG)

    def test_repl_is_default(self, home):
        with patch('phrasecoach.repl.PracticeREPL') as repl_class:
            assert cli.main(['--random', '--seed', '5']) == 0

        repl_class.return_value.run.assert_called_once()
        engine = repl_class.call_args[0][0]
        assert engine.selection == SelectionPolicy.RANDOM

    def test_clear_keys(self, home, capsys):
        config.save_config({'openai_api_key': 'sk-test', 'selection_policy': 'first'})

        assert cli.main(['--clear-keys']) == 0

        assert config.load_config() == {'selection_policy': 'first'}
        assert 'openai' in capsys.readouterr().out

    def test_add_unknown_category(self, home, capsys):
        assert cli.main(['--add', 'Where is the station?', '--category', '999']) == 1
        assert 'Category with id 999 not found' in capsys.readouterr().out

    def test_stats_show_streak(self, home, capsys):
        cli.main(['--stats'])
        assert 'Streak:        0 day(s)' in capsys.readouterr().out


class TestApiKeys:
    """Tests for storing and removing provider keys"""

    def test_save_api_key(self, home):
        config.save_api_key('gemini', '  AI-test  ')

        assert config.load_config() == {'gemini_api_key': 'AI-test', 'preferred_provider': 'gemini'}

    def test_save_api_key_rejects_bad_input(self, home):
        with pytest.raises(ValueError):
            config.save_api_key('mistral', 'key')
        with pytest.raises(ValueError):
            config.save_api_key('openai', '   ')
        assert config.load_config() == {}

    def test_clear_one_provider(self, home):
        config.save_config({'openai_api_key': 'sk-a', 'gemini_api_key': 'AI-b', 'preferred_provider': 'openai'})

        assert config.clear_api_keys('openai') == ['openai']
        assert config.load_config() == {'gemini_api_key': 'AI-b'}
        assert config.clear_api_keys('openai') == []

    def test_clear_keys_nothing_stored(self, home, capsys):
        assert cli.main(['--clear-keys']) == 0
        assert 'No stored API keys found' in capsys.readouterr().out


class TestSetup:
    """Tests for the interactive --setup flow"""

    def test_setup_saves_chosen_provider(self, home, monkeypatch):
        monkeypatch.setattr(cli, 'getpass', lambda prompt: 'sk-ant-test')
        with patch.object(cli.IntPrompt, 'ask', return_value=1):
            assert cli.main(['--setup']) == 0

        assert config.load_config() == {'anthropic_api_key': 'sk-ant-test', 'preferred_provider': 'anthropic'}

    def test_setup_empty_key(self, home, monkeypatch):
        monkeypatch.setattr(cli, 'getpass', lambda prompt: '')
        with patch.object(cli.IntPrompt, 'ask', return_value=2):
            assert cli.main(['--setup']) == 1

        assert config.load_config() == {}

    def test_setup_unexpected_prefix_declined(self, home, monkeypatch):
        monkeypatch.setattr(cli, 'getpass', lambda prompt: 'not-a-key')
        with patch.object(cli.IntPrompt, 'ask', return_value=3), \
                patch.object(cli.Confirm, 'ask', return_value=False):
            assert cli.main(['--setup']) == 1

        assert config.load_config() == {}

    def test_setup_keeps_existing_provider(self, home, monkeypatch):
        config.save_config({'openai_api_key': 'sk-a'})
        getpass = Mock()
        monkeypatch.setattr(cli, 'getpass', getpass)
        with patch.object(cli.Confirm, 'ask', return_value=False):
            assert cli.main(['--setup']) == 0

        getpass.assert_not_called()
        assert config.load_config() == {'openai_api_key': 'sk-a'}

    def test_setup_cancelled(self, home, monkeypatch):
        with patch.object(cli.IntPrompt, 'ask', side_effect=KeyboardInterrupt):
            assert cli.main(['--setup']) == 1
