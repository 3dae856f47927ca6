from setuptools import setup

setup(
    name='boosted-tree-nodes',
    version='1.0',
    py_modules=['feature_config', 'tree_codec', 'tree_ensemble', 'tree_node'],
    description='Boosted regression tree nodes: evaluation, scaling and JSON codec',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.10',
    install_requires=['numpy'],
    extras_require={'test': ['pytest']},
)
