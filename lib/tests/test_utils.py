"""
Test suite for lib/utils.py and lib/logging_utils.py
"""

import logging
import os
import tempfile
import unittest
from pathlib import Path

from lib.logging_utils import NOISY_LOGGERS, configureLogger, getLogLevelByStr, initLogging
from lib.utils import SECRET_MASK, dumpConfig, load_dotenv, maskSecrets


class TestConfigDump(unittest.TestCase):

    def test_mask_secrets_nested(self):
        """Test secret keys are masked at any depth, input is not modified"""
        config = {
            "openweathermap": {"api-key": "secret", "units": "metric"},
            "extra": [{"api-key": "other"}],
        }
        masked = maskSecrets(config)

        self.assertEqual(masked["openweathermap"], {"api-key": SECRET_MASK, "units": "metric"})
        self.assertEqual(masked["extra"], [{"api-key": SECRET_MASK}])
        self.assertEqual(config["openweathermap"]["api-key"], "secret")

    def test_mask_custom_keys(self):
        """Test custom secret key list"""
        self.assertEqual(maskSecrets({"token": "t", "api-key": "k"}, ["token"]), {"token": SECRET_MASK, "api-key": "k"})

    def test_dump_config(self):
        """Test indented sorted JSON without secrets, unicode kept and unknown types stringified"""
        output = dumpConfig({"b": {"api-key": "secret"}, "a": {"city": "Москва", "path": Path("a")}})

        self.assertNotIn("secret", output)
        self.assertEqual(
            output,
            '{\n  "a": {\n    "city": "Москва",\n    "path": "a"\n  },\n  "b": {\n    "api-key": "***"\n  }\n}',
        )


class TestLoadDotenv(unittest.TestCase):

    def setUp(self):
        self.tmpDir = tempfile.TemporaryDirectory()
        self.envPath = os.path.join(self.tmpDir.name, ".env")

    def tearDown(self):
        self.tmpDir.cleanup()
        os.environ.pop("WEATHERVANE_TEST_KEY", None)

    def test_missing_file(self):
        """Test missing .env is not an error"""
        self.assertEqual(load_dotenv(self.envPath), {})

    def test_parse_and_populate(self):
        """Test comments and malformed lines are skipped, quotes stripped"""
        with open(self.envPath, "wt", encoding="utf-8") as f:
            f.write('# comment\n\nWEATHERVANE_TEST_KEY = "abc=def"\nnot a pair\n')

        self.assertEqual(load_dotenv(self.envPath), {"WEATHERVANE_TEST_KEY": "abc=def"})
        self.assertEqual(os.environ["WEATHERVANE_TEST_KEY"], "abc=def")

    def test_no_populate(self):
        """Test environment is untouched when populateEnv is False"""
        with open(self.envPath, "wt", encoding="utf-8") as f:
            f.write("WEATHERVANE_TEST_KEY=1\n")

        self.assertEqual(load_dotenv(self.envPath, populateEnv=False), {"WEATHERVANE_TEST_KEY": "1"})
        self.assertNotIn("WEATHERVANE_TEST_KEY", os.environ)


class TestLoggingUtils(unittest.TestCase):

    def setUp(self):
        self.rootLogger = logging.getLogger()
        self.savedLevel = self.rootLogger.level
        self.savedHandlers = self.rootLogger.handlers[:]

    def tearDown(self):
        for handler in self.rootLogger.handlers[:]:
            self.rootLogger.removeHandler(handler)
            handler.close()
        for handler in self.savedHandlers:
            self.rootLogger.addHandler(handler)
        self.rootLogger.setLevel(self.savedLevel)

    def test_level_by_str(self):
        """Test level names are case insensitive and unknown ones fall back"""
        self.assertEqual(getLogLevelByStr("debug"), logging.DEBUG)
        self.assertEqual(getLogLevelByStr("WARNING"), logging.WARNING)
        self.assertIsNone(getLogLevelByStr("chatty"))
        self.assertEqual(getLogLevelByStr("chatty", logging.INFO), logging.INFO)

    def test_init_logging_console(self):
        """Test root logger gets level and single console handler"""
        initLogging({"level": "DEBUG", "console": True})
        initLogging({"level": "DEBUG", "console": True})

        self.assertEqual(self.rootLogger.level, logging.DEBUG)
        self.assertEqual(len(self.rootLogger.handlers), 1)
        for name in NOISY_LOGGERS:
            self.assertEqual(logging.getLogger(name).level, logging.WARNING)

    def test_named_logger_config(self):
        """Test [logging.logger.<name>] sections"""
        initLogging({"level": "INFO", "logger": {"weathervane.test": {"level": "ERROR"}}})
        self.assertEqual(logging.getLogger("weathervane.test").level, logging.ERROR)

    def test_file_handler(self):
        """Test file logging creates log directory"""
        with tempfile.TemporaryDirectory() as tmpDir:
            logFile = os.path.join(tmpDir, "logs", "app.log")
            testLogger = logging.getLogger("weathervane.file_test")
            configureLogger(testLogger, {"level": "INFO", "file": logFile, "file-level": "WARNING"})
            try:
                self.assertTrue(os.path.isdir(os.path.dirname(logFile)))
                self.assertEqual(len(testLogger.handlers), 1)
                self.assertEqual(testLogger.handlers[0].level, logging.WARNING)
            finally:
                for handler in testLogger.handlers[:]:
                    testLogger.removeHandler(handler)
                    handler.close()


if __name__ == "__main__":
    unittest.main()
