# SPDX-FileCopyrightText: 2019 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import kubernetes.client

import kube.ctx
import kube.helper
from ci.util import Failure


kubeconfig_dict = {
    'apiVersion': 'v1',
    'kind': 'Config',
    'current-context': 'test',
    'clusters': [{
        'name': 'test',
        'cluster': {'server': 'https://api.example.com'},
    }],
    'contexts': [{
        'name': 'test',
        'context': {'cluster': 'test', 'user': 'test'},
    }],
    'users': [{
        'name': 'test',
        'user': {'token': 'a-token'},
    }],
}


class CtxTest(unittest.TestCase):
    def setUp(self):
        self.kubernetes_config_mock = MagicMock()
        config_patcher = patch.object(kube.ctx, 'config', self.kubernetes_config_mock)
        config_patcher.start()
        self.addCleanup(config_patcher.stop)

    def test_get_kubecfg_explicit_kubeconfig_should_have_precedence(self):
        with patch.dict(os.environ, {'KUBECONFIG': 'should_be_ignored'}):
            examinee = kube.ctx.Ctx(kubeconfig_dict=kubeconfig_dict)

            api_client = examinee.get_kubecfg()

        self.assertEqual(api_client.configuration.host, 'https://api.example.com')
        self.kubernetes_config_mock.new_client_from_config.assert_not_called()
        self.kubernetes_config_mock.load_incluster_config.assert_not_called()

    def test_get_kubecfg_env_should_be_honoured(self):
        examinee = kube.ctx.Ctx()

        with patch.dict(os.environ, {'KUBECONFIG': sys.executable}):
            api_client = examinee.get_kubecfg()

        self.kubernetes_config_mock.new_client_from_config.assert_called_once_with(
            config_file=sys.executable,
        )
        self.assertIs(api_client, self.kubernetes_config_mock.new_client_from_config.return_value)

    def test_get_kubecfg_should_fail_on_absent_file(self):
        examinee = kube.ctx.Ctx()

        with patch.dict(os.environ, {'KUBECONFIG': 'no such file'}):
            with self.assertRaises(Failure):
                examinee.get_kubecfg()

    def test_get_kubecfg_falls_back_to_incluster_config(self):
        examinee = kube.ctx.Ctx()

        with patch.dict(os.environ, clear=True):
            api_client = examinee.get_kubecfg()

        self.kubernetes_config_mock.load_incluster_config.assert_called_once()
        self.assertIsInstance(api_client, kubernetes.client.ApiClient)

    def test_secret_helper(self):
        examinee = kube.ctx.Ctx(kubeconfig_dict=kubeconfig_dict)

        secret_helper = examinee.secret_helper()

        self.assertIsInstance(secret_helper, kube.helper.KubernetesSecretHelper)
        self.assertIsInstance(secret_helper.core_api, kubernetes.client.CoreV1Api)
