import setuptools
import os

own_dir = os.path.abspath(os.path.dirname(__file__))


def requirements(path: str='requirements.txt'):
    with open(os.path.join(own_dir, path)) as f:
        for line in f.readlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            yield line


def packages():
    return [
        'ccc',
        'ci',
        'gcp',
        'kube',
        'model',
    ]


def version():
    with open(os.path.join(own_dir, 'VERSION')) as f:
        return f.read().strip()


setuptools.setup(
    name='gardener-gcp-credentials',
    version=version(),
    description='Gardener GCP Provider Credentials Resolution',
    python_requires='>=3.10',
    packages=packages(),
    package_data={
        '':['VERSION'],
    },
    install_requires=list(requirements()),
    extras_require={
        'test': list(requirements(path='requirements.test.txt')),
    },
    entry_points={
    },
)
