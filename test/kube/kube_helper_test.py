import base64
import unittest.mock

import kubernetes.client
from kubernetes.client.rest import ApiException
import pytest

import kube.helper as examinee


@pytest.fixture
def core_api():
    return unittest.mock.MagicMock()


@pytest.fixture
def secret_helper(core_api):
    return examinee.KubernetesSecretHelper(core_api)


def test_secret_data():
    secret = kubernetes.client.V1Secret(
        data={
            'foo': base64.b64encode(b'bar').decode('utf-8'),
            'both': base64.b64encode(b'from-data').decode('utf-8'),
        },
        string_data={
            'both': 'from-string-data',
        },
    )

    assert examinee.secret_data(secret) == {
        'foo': b'bar',
        'both': b'from-string-data',
    }


def test_secret_data_empty():
    assert examinee.secret_data(kubernetes.client.V1Secret()) == {}


def test_get_secret(secret_helper, core_api):
    secret = secret_helper.get_secret(name='bar', namespace='foo')

    core_api.read_namespaced_secret.assert_called_once_with(name='bar', namespace='foo')
    assert secret is core_api.read_namespaced_secret.return_value


def test_get_secret_absent(secret_helper, core_api):
    core_api.read_namespaced_secret.side_effect = ApiException(status=404)

    assert secret_helper.get_secret(name='bar', namespace='foo') is None


def test_get_secret_propagates_other_errors(secret_helper, core_api):
    core_api.read_namespaced_secret.side_effect = ApiException(status=403)

    with pytest.raises(ApiException) as ei:
        secret_helper.get_secret(name='bar', namespace='foo')

    assert ei.value.status == 403

