"""
Exceções canônicas da camada de configuração do featureflow.

As exceções aqui definidas representam violações estruturais explícitas
durante o carregamento, merge e resolução de settings, e não erros de
execução de nodes.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa falha de node ou de versionamento

Limites explícitos:
    - Não executa pipeline
    - Não realiza fallback ou recovery
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração do featureflow.

    Permite captura genérica de falhas de configuração, separando-as
    claramente de falhas do grafo ou da execução.
    """


class ConfigFileNotFoundError(ConfigError):
    """
    Um arquivo de configuração informado explicitamente não existe.

    Decisões arquiteturais:
        - Um caminho explícito de defaults é obrigatório quando informado
        - O arquivo local (override) é opcional e sua ausência é ignorada
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    O conteúdo raiz do arquivo não é um dicionário (`dict`).

    Listas ou escalares no root são rejeitados sem normalização.
    """


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo:
        - base:     {"artifacts": {"persist": true}}
        - override: {"artifacts": "local"}

    Nenhum merge parcial é produzido em caso de conflito.
    """


class InvalidSettingError(ConfigError):
    """
    Valor de setting fora do domínio aceito (ex.: `artifacts.store: s3`).

    Levantada por `resolve_settings`, sempre nomeando a chave pontuada
    (`section.key`) que falhou.
    """
