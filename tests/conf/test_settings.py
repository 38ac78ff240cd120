import os
from unittest import TestCase
from unittest.mock import patch

from pydantic import ValidationError

from dappsale.conf.get_settings import (
    CONFIG_FILE_ENV,
    get_global_settings,
    load_settings_module,
    reset_global_settings,
)
from dappsale.conf.settings import ETHER, SaleSettings
from dappsale.nanocontracts.blueprints import BLUEPRINT_IDS


class SettingsTest(TestCase):
    def setUp(self):
        reset_global_settings()
        self.addCleanup(reset_global_settings)

    def test_localnet(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(CONFIG_FILE_ENV, None)
            settings = get_global_settings()

        self.assertEqual(settings.NETWORK_NAME, 'localnet')
        self.assertEqual(settings.PRE_SALE_RATE, 500)
        self.assertEqual(settings.PUBLIC_SALE_RATE, 250)
        self.assertEqual(settings.SALE_CAP, 100 * ETHER)
        self.assertEqual(settings.SALE_GOAL, 50 * ETHER)
        self.assertEqual(set(settings.BLUEPRINTS.values()), set(BLUEPRINT_IDS))

    def test_settings_are_cached(self):
        with patch.dict(os.environ, {CONFIG_FILE_ENV: 'dappsale.conf.localnet'}):
            self.assertIs(get_global_settings(), get_global_settings())

    def test_cannot_switch_source(self):
        with patch.dict(os.environ, {CONFIG_FILE_ENV: 'dappsale.conf.localnet'}):
            get_global_settings()
        with patch.dict(os.environ, {CONFIG_FILE_ENV: 'some.other.module'}):
            with self.assertRaises(RuntimeError):
                get_global_settings()

    def test_module_without_settings(self):
        with self.assertRaises(TypeError):
            load_settings_module('dappsale.conf.settings')

    def test_validation(self):
        with self.assertRaises(ValidationError):
            SaleSettings(NETWORK_NAME='test', SALE_CAP=10, SALE_GOAL=11)
        with self.assertRaises(ValidationError):
            SaleSettings(NETWORK_NAME='test', PRE_SALE_RATE=0)

        settings = SaleSettings(NETWORK_NAME='test')
        with self.assertRaises(ValidationError):
            settings.SALE_CAP = 1
