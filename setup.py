import os

# BEFORE importing distutils, remove MANIFEST. distutils doesn't properly
# update it when the contents of directories change.
if os.path.exists('MANIFEST'): os.remove('MANIFEST')

from setuptools import setup

dirname = os.path.abspath(os.path.dirname(__file__))

# get metadata without importing the package (and its dependencies)

info = {}
with open(os.path.join(dirname, 'irlsglm', 'info.py'), 'rt') as f:
    exec(f.read(), info)

# get long_description

long_description = open(os.path.join(dirname, 'README.md'), 'rt', encoding='utf-8').read()
long_description_content_type = 'text/markdown'

def main(**extra_args):
    setup(name=info['NAME'],
          version=info['VERSION'],
          description=info['DESCRIPTION'],
          author=info['AUTHOR'],
          author_email=info['AUTHOR_EMAIL'],
          maintainer=info['MAINTAINER'],
          license=info['LICENSE'],
          classifiers=info['CLASSIFIERS'],
          platforms=info['PLATFORMS'],
          packages = ['irlsglm'],
          python_requires=info['PYTHON_REQUIRES'],
          install_requires=info['REQUIRES'],
          extras_require={'test': info['TEST_REQUIRES']},
          long_description=long_description,
          long_description_content_type=long_description_content_type,
          **extra_args
         )

#simple way to test what setup will do
#python setup.py install --prefix=/tmp
if __name__ == "__main__":
    main()
