"""
Core do featureflow.

Este pacote reúne as responsabilidades essenciais para declarar,
construir, executar e rastrear pipelines de features.

Componentes principais:
    - config       → resolução de configuração (merge, validação, hashing)
    - pipeline     → tipos de node, registry e contexto de execução
    - engine       → grafo (DAG), scheduler e engine de materialização
    - traceability → RunManifest e Event Log para auditoria
    - exceptions / errors → taxonomia de erros e payload serializável

Limites explícitos:
    - Não contém lógica de extração de features nem de treino
    - Não depende de CLI ou serviços externos
"""
